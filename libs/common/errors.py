"""Base exception for errors that leave a service as ``{"error": ...}`` JSON.

Usage:
    from libs.common.errors import AppError

    class OutOfStock(AppError):
        status_code = 409
"""

from typing import Any


class AppError(Exception):
    """An error with an HTTP status and a client-safe message."""

    status_code: int = 400

    def __init__(self, message: str, **extra: Any):
        self.message = message
        self.extra = extra
        super().__init__(message)

    def to_response(self) -> dict[str, Any]:
        return {"error": self.message, **self.extra}

    def log_fields(self) -> dict[str, Any]:
        """Extra structured fields for the error log; never sent to the client."""
        return {}
