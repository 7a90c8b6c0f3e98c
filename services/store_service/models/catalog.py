"""Store catalog models read by checkout: products and delivery zones."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import Boolean, DateTime, Numeric, String, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column, relationship


class Product(Base):
    """Sellable products. Managed by the admin screens; checkout only reads them."""

    __tablename__ = "store_products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Pricing (major units)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # Relationships
    inventory = relationship("InventoryRecord", back_populates="product")

    @property
    def effective_price(self) -> Decimal:
        """Discounted price when it is a real discount, otherwise the base price."""
        if (
            self.discount_price is not None
            and self.discount_price > 0
            and self.discount_price < self.price
        ):
            return self.discount_price
        return self.price

    def __repr__(self):
        return f"<Product {self.name}>"


class DeliveryZone(Base):
    """Named shipping area with a flat delivery fee."""

    __tablename__ = "store_delivery_zones"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g., "Westlands"
    fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<DeliveryZone {self.name} fee={self.fee}>"
