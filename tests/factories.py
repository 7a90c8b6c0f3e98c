"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs. Money defaults are whole numbers so SQLite
compares them exactly.

Usage:
    product = ProductFactory.create(price=Decimal("1000.00"))
    db_session.add(product)
    await db_session.commit()
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex[:8]}@test.com"


def _merchant_reference() -> str:
    return f"ORD-1718000000000-{uuid.uuid4().hex[:8]}"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ProductFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Product

        defaults = {
            "id": _uuid(),
            "name": "Velvet Matte Lipstick",
            "price": Decimal("1000.00"),
            "discount_price": None,
            "is_active": True,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Product(**defaults)


class DeliveryZoneFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import DeliveryZone

        defaults = {
            "id": _uuid(),
            "name": "Westlands",
            "fee": Decimal("150.00"),
            "is_active": True,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return DeliveryZone(**defaults)


class InventoryFactory:
    @staticmethod
    def create(product_id, **overrides):
        from services.store_service.models import InventoryRecord

        defaults = {
            "id": _uuid(),
            "product_id": product_id,
            "size": None,
            "color": None,
            "quantity": 10,
            "low_stock_threshold": 2,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return InventoryRecord(**defaults)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderFactory:
    @staticmethod
    def create(**overrides):
        """Pending delivery order for KES 1,150 (1,000 + 150 delivery)."""
        from services.store_service.models import (
            DeliveryType,
            Order,
            OrderStatus,
            PaymentProvider,
        )

        defaults = {
            "id": _uuid(),
            "merchant_reference": _merchant_reference(),
            "customer_name": "Amani Wanjiru",
            "customer_email": _unique_email(),
            "customer_phone": "+254700000000",
            "delivery_type": DeliveryType.DELIVERY,
            "delivery_area": "Westlands",
            "delivery_address": "12 Rhapta Road",
            "subtotal_amount": Decimal("1000.00"),
            "delivery_fee": Decimal("150.00"),
            "total_amount": Decimal("1150.00"),
            "currency": "KES",
            "status": OrderStatus.PENDING,
            "payment_provider": PaymentProvider.PAYSTACK,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Order(**defaults)


class OrderItemFactory:
    @staticmethod
    def create(order_id, product_id, **overrides):
        from services.store_service.models import OrderItem

        defaults = {
            "id": _uuid(),
            "order_id": order_id,
            "product_id": product_id,
            "product_name": "Velvet Matte Lipstick",
            "size": None,
            "color": None,
            "quantity": 1,
            "unit_price": Decimal("1000.00"),
            "line_total": Decimal("1000.00"),
            "created_at": _now(),
        }
        defaults.update(overrides)
        return OrderItem(**defaults)


# ---------------------------------------------------------------------------
# Gateway outcomes
# ---------------------------------------------------------------------------


class PaymentOutcomeFactory:
    @staticmethod
    def create(**overrides):
        """Successful KES 1,150 payment (115000 minor units)."""
        from services.store_service.outcomes import OutcomeKind, PaymentOutcome

        defaults = {
            "kind": OutcomeKind.SUCCESS,
            "amount_minor": 115000,
            "currency": "KES",
            "external_id": "gw-txn-1",
            "merchant_reference": None,
            "raw_status": None,
        }
        defaults.update(overrides)
        if defaults["raw_status"] is None:
            defaults["raw_status"] = defaults["kind"].value
        return PaymentOutcome(**defaults)
