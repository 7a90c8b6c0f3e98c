"""Store inventory model: stock per (product, size, color) variant."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship


class InventoryRecord(Base):
    """Stock for one product variant. A missing row means the variant cannot be sold."""

    __tablename__ = "store_inventory"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("store_products.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    # NULL means "no size / no color", never "any"
    size: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    quantity: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    low_stock_threshold: Mapped[int] = mapped_column(
        Integer, default=5, server_default="5"
    )

    last_sold_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="non_negative_stock"),
    )

    # Relationships
    product = relationship("Product", back_populates="inventory")

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold

    def __repr__(self):
        return (
            f"<InventoryRecord product={self.product_id} size={self.size} "
            f"color={self.color} qty={self.quantity}>"
        )


# One row per variant; a NULL size or color matches only another NULL
Index(
    "uq_store_inventory_variant",
    InventoryRecord.product_id,
    func.coalesce(InventoryRecord.size, ""),
    func.coalesce(InventoryRecord.color, ""),
    unique=True,
)
