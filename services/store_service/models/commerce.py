"""Store commerce models: orders and their line items."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import (
    PROCESSED_STATUSES,
    DeliveryType,
    OrderStatus,
    PaymentProvider,
    enum_values,
)
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# ORDER MODELS
# ============================================================================


class Order(Base):
    """Orders. Created pending by checkout, moved to paid only by reconciliation."""

    __tablename__ = "store_orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Sole correlation key between gateway callbacks and the order
    merchant_reference: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )

    # Customer
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Fulfillment
    delivery_type: Mapped[DeliveryType] = mapped_column(
        SAEnum(
            DeliveryType,
            values_callable=enum_values,
            name="store_delivery_type_enum",
        ),
        default=DeliveryType.DELIVERY,
        nullable=False,
    )
    delivery_zone_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("store_delivery_zones.id", ondelete="SET NULL"),
        nullable=True,
    )
    delivery_area: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )  # Zone name at order time
    delivery_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Pricing (major units)
    subtotal_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    delivery_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0", nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), default="KES", nullable=False)

    # Status
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="store_order_status_enum",
        ),
        default=OrderStatus.PENDING,
        server_default="pending",
        nullable=False,
        index=True,
    )

    # Payment
    payment_provider: Mapped[Optional[PaymentProvider]] = mapped_column(
        SAEnum(
            PaymentProvider,
            values_callable=enum_values,
            name="store_payment_provider_enum",
        ),
        nullable=True,
    )
    gateway_tracking_id: Mapped[Optional[str]] = mapped_column(
        String(128), index=True, nullable=True
    )  # Pesapal OrderTrackingId or Paystack transaction id

    # Timestamps
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint(
            "total_amount = subtotal_amount + delivery_fee", name="order_total_matches"
        ),
        CheckConstraint(
            "delivery_type <> 'pickup' OR delivery_fee = 0", name="pickup_has_no_fee"
        ),
    )

    # Relationships
    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan"
    )
    delivery_zone = relationship("DeliveryZone")

    @property
    def is_processed(self) -> bool:
        return self.status in PROCESSED_STATUSES

    @property
    def short_ref(self) -> str:
        """First eight characters of the id, used in e-mails and gateway descriptions."""
        return str(self.id)[:8]

    def __repr__(self):
        return f"<Order {self.merchant_reference} status={self.status}>"


class OrderItem(Base):
    """Order line items (snapshot at order time)."""

    __tablename__ = "store_order_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("store_orders.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("store_products.id"),
        nullable=False,
    )

    # Snapshot at order time (products may change)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (CheckConstraint("quantity > 0", name="positive_quantity"),)

    # Relationships
    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.product_name} qty={self.quantity}>"
