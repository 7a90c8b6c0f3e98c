"""Inventory decrement applied when an order is claimed as paid."""

import uuid

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service.models import InventoryRecord
from services.store_service.services.ledger import get_order_items
from services.store_service.services.stock import variant_filter
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def apply_decrement(db: AsyncSession, order_id: uuid.UUID) -> int:
    """
    Subtract each ordered quantity from its variant's stock, floored at zero.

    Runs inside the caller's transaction and does not commit. Items whose
    variant has no inventory row are skipped. Returns the number of rows
    adjusted.
    """
    items = await get_order_items(db, order_id)
    adjusted = 0

    for item in items:
        result = await db.execute(
            select(InventoryRecord)
            .where(*variant_filter(item.product_id, item.size, item.color))
            .with_for_update()
        )
        record = result.scalar_one_or_none()
        if record is None:
            logger.warning(
                f"No inventory row for {item.product_name} "
                f"(size={item.size}, color={item.color}); skipping decrement",
                extra={
                    "extra_fields": {
                        "order_id": str(order_id),
                        "product_id": str(item.product_id),
                    }
                },
            )
            continue

        if record.quantity < item.quantity:
            logger.warning(
                "Oversold %s: had %d, sold %d",
                item.product_name,
                record.quantity,
                item.quantity,
            )

        record.quantity = max(0, record.quantity - item.quantity)
        record.last_sold_at = utc_now()
        adjusted += 1

        if record.is_low_stock:
            logger.warning(
                "Low stock: %s (size=%s, color=%s) has %d left",
                item.product_name,
                item.size,
                item.color,
                record.quantity,
            )

    await db.flush()
    return adjusted
