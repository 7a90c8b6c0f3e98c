"""Store domain exceptions.

Raised by the service layer. Every class derives from
``libs.common.errors.AppError``, which ``libs.common.error_handler`` turns
into ``{"error": message, ...}`` JSON. Messages are short and safe to show
to a customer. Upstream detail stays on the exception for the logs.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from libs.common.errors import AppError


class StoreError(AppError):
    """Base class for store errors surfaced at the HTTP boundary."""


# ---------------------------------------------------------------------------
# Request / checkout errors (customer actionable)
# ---------------------------------------------------------------------------


class ValidationError(StoreError):
    """Missing required field, invalid delivery type, delivery without a zone."""


class ProductNotFound(StoreError):
    def __init__(self, product_id: uuid.UUID):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class InsufficientStock(StoreError):
    def __init__(
        self,
        product_name: str,
        requested: int,
        available: int,
        size: Optional[str] = None,
    ):
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product_name} ({size or 'Standard'})",
            requested=requested,
            available=available,
        )


class InvalidDeliveryZone(StoreError):
    def __init__(self, message: str = "Invalid delivery zone"):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Reconciliation errors
# ---------------------------------------------------------------------------


class PaymentNotSuccessful(StoreError):
    """The gateway reports the transaction did not succeed."""

    def __init__(self, gateway_status: str):
        self.gateway_status = gateway_status
        super().__init__("Payment verification failed", status=gateway_status)


class MalformedNotification(StoreError):
    def __init__(self, message: str = "Missing tracking ID or merchant reference"):
        super().__init__(message)


class ReferenceMismatch(StoreError):
    def __init__(self, expected: str, received: Optional[str]):
        self.expected = expected
        self.received = received
        super().__init__("Reference mismatch")


class OrderNotFound(StoreError):
    """Permanent: the gateway should stop retrying this callback."""

    status_code = 404

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__("Order not found")


class AmountMismatch(StoreError):
    """Paid amount outside the accepted band around the order total."""

    status_code = 409

    def __init__(self, expected_minor: int, paid_minor: int):
        self.expected_minor = expected_minor
        self.paid_minor = paid_minor
        super().__init__("Payment amount mismatch")


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------


class PersistenceError(StoreError):
    status_code = 500

    def __init__(self, message: str = "Failed to create order"):
        super().__init__(message)


class GatewayError(StoreError):
    """A payment gateway call failed. The upstream status and body are kept for logs."""

    status_code = 502

    def __init__(
        self,
        message: str,
        provider: str,
        upstream_status: Optional[int] = None,
        response_data: Optional[dict] = None,
    ):
        self.provider = provider
        self.upstream_status = upstream_status
        self.response_data = response_data or {}
        super().__init__(message)

    def to_response(self) -> dict[str, Any]:
        # Upstream detail is never echoed to the client
        return {"error": self.message}

    def log_fields(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "upstream_status": self.upstream_status,
            "upstream_body": self.response_data,
        }


class GatewayNotConfigured(GatewayError):
    """Credentials or IPN id missing from settings."""

    status_code = 500

    def __init__(self, provider: str, setting: str):
        self.setting = setting
        super().__init__("Server configuration error", provider=provider)
