"""Cart validation against the catalog and inventory.

Prices always come from the database; the client only tells us what and how
many. A variant with no inventory row has zero stock.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional, Protocol

from libs.common.currency import from_minor_units, to_minor_units
from libs.common.logging import get_logger
from services.store_service.errors import InsufficientStock, ProductNotFound
from services.store_service.models import InventoryRecord, Product
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class CartLine(Protocol):
    """Shape of one requested cart line (see ``schemas.CartItemIn``)."""

    product_id: uuid.UUID
    quantity: int
    selected_size: Optional[str]
    selected_color: Optional[str]


@dataclass
class ValidatedLine:
    product_id: uuid.UUID
    product_name: str
    size: Optional[str]
    color: Optional[str]
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass
class ValidatedCart:
    lines: list[ValidatedLine] = field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")


def normalize_variant_value(value: Optional[str]) -> Optional[str]:
    """Blank size/color means "no variant", stored as NULL."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def variant_filter(product_id: uuid.UUID, size: Optional[str], color: Optional[str]):
    """WHERE clause for one inventory variant. NULL matches only NULL."""
    return (
        InventoryRecord.product_id == product_id,
        InventoryRecord.size.is_(None) if size is None else InventoryRecord.size == size,
        InventoryRecord.color.is_(None)
        if color is None
        else InventoryRecord.color == color,
    )


async def get_available_quantity(
    db: AsyncSession,
    product_id: uuid.UUID,
    size: Optional[str],
    color: Optional[str],
) -> int:
    result = await db.execute(
        select(InventoryRecord.quantity).where(*variant_filter(product_id, size, color))
    )
    quantity = result.scalar_one_or_none()
    return quantity if quantity is not None else 0


async def validate_cart(db: AsyncSession, cart_items: Iterable[CartLine]) -> ValidatedCart:
    """
    Check every cart line against the catalog and current stock.

    Lines for the same variant are summed before comparing with stock.

    Raises:
        ProductNotFound: Product id unknown or product inactive
        InsufficientStock: Requested more than is on hand
    """
    cart = ValidatedCart()
    requested_by_variant: dict[tuple, int] = {}
    products: dict[uuid.UUID, Product] = {}
    subtotal_minor = 0

    for item in cart_items:
        product = products.get(item.product_id)
        if product is None:
            result = await db.execute(
                select(Product).where(Product.id == item.product_id)
            )
            product = result.scalar_one_or_none()
            if product is None or not product.is_active:
                raise ProductNotFound(item.product_id)
            products[item.product_id] = product

        size = normalize_variant_value(item.selected_size)
        color = normalize_variant_value(item.selected_color)
        variant = (product.id, size, color)

        requested = requested_by_variant.get(variant, 0) + item.quantity
        available = await get_available_quantity(db, product.id, size, color)
        if requested > available:
            logger.info(
                "Insufficient stock for %s (%s/%s): requested %d, available %d",
                product.name,
                size,
                color,
                requested,
                available,
            )
            raise InsufficientStock(product.name, requested, available, size=size)
        requested_by_variant[variant] = requested

        unit_price = product.effective_price
        line_total_minor = to_minor_units(unit_price) * item.quantity
        subtotal_minor += line_total_minor

        cart.lines.append(
            ValidatedLine(
                product_id=product.id,
                product_name=product.name,
                size=size,
                color=color,
                quantity=item.quantity,
                unit_price=from_minor_units(to_minor_units(unit_price)),
                line_total=from_minor_units(line_total_minor),
            )
        )

    cart.subtotal = from_minor_units(subtotal_minor)
    return cart
