"""Enum definitions for store service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Payment has been reconciled; later fulfillment steps keep it that way.
PROCESSED_STATUSES = frozenset(
    {
        OrderStatus.PAID,
        OrderStatus.PREPARING,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    }
)

# Statuses the paid claim may be taken from. A failed attempt can still be
# rescued by a later successful payment for the same reference.
PAYABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.FAILED})

FAILABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.FAILED})


class DeliveryType(str, enum.Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class PaymentProvider(str, enum.Enum):
    PAYSTACK = "paystack"
    PESAPAL = "pesapal"
