"""Store Service models package."""

from services.store_service.models.catalog import DeliveryZone, Product
from services.store_service.models.commerce import Order, OrderItem
from services.store_service.models.enums import (
    FAILABLE_STATUSES,
    PAYABLE_STATUSES,
    PROCESSED_STATUSES,
    DeliveryType,
    OrderStatus,
    PaymentProvider,
)
from services.store_service.models.inventory import InventoryRecord

__all__ = [
    "DeliveryType",
    "DeliveryZone",
    "FAILABLE_STATUSES",
    "InventoryRecord",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PAYABLE_STATUSES",
    "PROCESSED_STATUSES",
    "PaymentProvider",
    "Product",
]
