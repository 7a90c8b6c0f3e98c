"""Store service routers package."""

from services.store_service.routers.payments import router as payments_router
from services.store_service.routers.webhooks import router as webhooks_router

__all__ = [
    "payments_router",
    "webhooks_router",
]
