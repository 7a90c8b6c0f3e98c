"""Global exception handlers for FastAPI.

Every error leaves the service as ``{"error": <message>, ...}`` JSON.

Usage:
    from libs.common.error_handler import add_exception_handlers

    app = FastAPI()
    add_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from libs.common.errors import AppError
from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Domain errors carry their own status code and client-safe message."""
    extra_fields = {
        "error_type": type(exc).__name__,
        "status_code": exc.status_code,
        "path": request.url.path,
    }
    extra_fields.update(exc.log_fields())

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{type(exc).__name__}: {exc.message}", extra={"extra_fields": extra_fields})

    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed or incomplete request bodies."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        extra={"extra_fields": {"path": request.url.path, "errors": errors}},
    )
    return JSONResponse(
        status_code=400,
        content={"error": "Missing required fields", "detail": errors},
    )


async def database_error_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    logger.error(
        f"Database error: {exc!r}",
        exc_info=True,
        extra={"extra_fields": {"path": request.url.path}},
    )
    return JSONResponse(status_code=500, content={"error": "Database error"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort. The stack trace goes to the logs, never to the client."""
    logger.exception(
        f"Unhandled exception: {exc!r}",
        extra={
            "extra_fields": {
                "path": request.url.path,
                "method": request.method,
                "request_id": get_request_id(),
            }
        },
    )
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def add_exception_handlers(app: FastAPI) -> None:
    """Register the global exception handlers on ``app``."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
