"""Order totals, delivery fees and merchant references."""

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from libs.common.currency import from_minor_units, to_minor_units
from libs.common.datetime_utils import epoch_millis
from services.store_service.errors import InvalidDeliveryZone
from services.store_service.models import DeliveryType, DeliveryZone
from services.store_service.services.stock import ValidatedLine
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(frozen=True)
class PricingTotals:
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal

    @property
    def total_minor(self) -> int:
        return to_minor_units(self.total)


async def resolve_delivery_zone(
    db: AsyncSession, zone_id: Optional[uuid.UUID]
) -> DeliveryZone:
    """Load an active delivery zone or raise InvalidDeliveryZone."""
    if zone_id is None:
        raise InvalidDeliveryZone("Delivery zone is required for delivery orders")

    result = await db.execute(
        select(DeliveryZone).where(
            DeliveryZone.id == zone_id,
            DeliveryZone.is_active.is_(True),
        )
    )
    zone = result.scalar_one_or_none()
    if zone is None:
        raise InvalidDeliveryZone()
    return zone


def compute_totals(
    lines: Iterable[ValidatedLine],
    delivery_type: DeliveryType,
    zone: Optional[DeliveryZone] = None,
) -> PricingTotals:
    """
    subtotal = sum of line totals, fee = zone fee (0 for pickup),
    total = subtotal + fee. Summed in minor units so the total always
    equals its parts exactly.
    """
    subtotal_minor = sum(to_minor_units(line.line_total) for line in lines)

    if delivery_type == DeliveryType.PICKUP:
        fee_minor = 0
    else:
        if zone is None:
            raise InvalidDeliveryZone("Delivery zone is required for delivery orders")
        fee_minor = to_minor_units(zone.fee)

    return PricingTotals(
        subtotal=from_minor_units(subtotal_minor),
        delivery_fee=from_minor_units(fee_minor),
        total=from_minor_units(subtotal_minor + fee_minor),
    )


def generate_merchant_reference() -> str:
    """Generate a unique order reference like ORD-1718000000000-a1b2c3d4."""
    return f"ORD-{epoch_millis()}-{uuid.uuid4().hex[:8]}"
