"""Order ledger: creation and the guarded status transitions.

Only reconciliation moves an order to ``paid``, and only through
``transition_to_paid``; the row count of that UPDATE decides which of
several concurrent callers owns the side effects.
"""

import uuid
from typing import Iterable, Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service.errors import PersistenceError
from services.store_service.models import (
    FAILABLE_STATUSES,
    PAYABLE_STATUSES,
    DeliveryType,
    DeliveryZone,
    Order,
    OrderItem,
    OrderStatus,
    PaymentProvider,
)
from services.store_service.services.pricing import PricingTotals
from services.store_service.services.stock import ValidatedLine
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def create_order(
    db: AsyncSession,
    *,
    merchant_reference: str,
    customer_name: str,
    customer_email: str,
    customer_phone: Optional[str],
    delivery_type: DeliveryType,
    zone: Optional[DeliveryZone],
    delivery_address: Optional[str],
    lines: Iterable[ValidatedLine],
    totals: PricingTotals,
    currency: str,
    provider: PaymentProvider,
) -> Order:
    """Persist a pending order and its line items as one unit.

    Raises:
        PersistenceError: Nothing was written
    """
    order = Order(
        merchant_reference=merchant_reference,
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
        delivery_type=delivery_type,
        delivery_zone_id=zone.id if zone else None,
        delivery_area=zone.name if zone else None,
        delivery_address=delivery_address,
        subtotal_amount=totals.subtotal,
        delivery_fee=totals.delivery_fee,
        total_amount=totals.total,
        currency=currency,
        status=OrderStatus.PENDING,
        payment_provider=provider,
    )

    order.items = [
        OrderItem(
            product_id=line.product_id,
            product_name=line.product_name,
            size=line.size,
            color=line.color,
            quantity=line.quantity,
            unit_price=line.unit_price,
            line_total=line.line_total,
        )
        for line in lines
    ]

    try:
        db.add(order)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            f"Failed to create order {merchant_reference}: {e!r}",
            extra={"extra_fields": {"merchant_reference": merchant_reference}},
        )
        raise PersistenceError() from e

    logger.info(
        "Created order %s (%s %s, provider=%s)",
        merchant_reference,
        currency,
        totals.total,
        provider.value,
        extra={
            "extra_fields": {
                "order_id": str(order.id),
                "merchant_reference": merchant_reference,
            }
        },
    )
    return order


async def find_by_merchant_reference(
    db: AsyncSession, reference: str
) -> Optional[Order]:
    result = await db.execute(
        select(Order).where(Order.merchant_reference == reference)
    )
    return result.scalar_one_or_none()


async def get_order_items(db: AsyncSession, order_id: uuid.UUID) -> list[OrderItem]:
    result = await db.execute(
        select(OrderItem)
        .where(OrderItem.order_id == order_id)
        .order_by(OrderItem.created_at, OrderItem.product_name)
    )
    return list(result.scalars().all())


async def attach_tracking_id(
    db: AsyncSession, order_id: uuid.UUID, tracking_id: Optional[str]
) -> None:
    """Store the gateway tracking id returned when the hosted page was created."""
    if not tracking_id:
        return
    await db.execute(
        update(Order)
        .where(Order.id == order_id)
        .values(gateway_tracking_id=tracking_id, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    await db.commit()


async def transition_to_paid(
    db: AsyncSession,
    order_id: uuid.UUID,
    *,
    tracking_id: Optional[str],
    provider: PaymentProvider,
) -> bool:
    """
    Claim the order for payment.

    Returns True only for the caller whose UPDATE changed the row; every
    later or concurrent caller gets False. Does not commit: the caller
    commits the claim together with the inventory decrement.
    """
    now = utc_now()
    values = {
        "status": OrderStatus.PAID,
        "paid_at": now,
        "payment_provider": provider,
        "updated_at": now,
    }
    if tracking_id:
        values["gateway_tracking_id"] = tracking_id

    result = await db.execute(
        update(Order)
        .where(Order.id == order_id, Order.status.in_(list(PAYABLE_STATUSES)))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def transition_to_failed(
    db: AsyncSession,
    order_id: uuid.UUID,
    tracking_id: Optional[str] = None,
) -> bool:
    """Mark an unpaid order failed. Processed and cancelled orders are left alone."""
    values = {"status": OrderStatus.FAILED, "updated_at": utc_now()}
    if tracking_id:
        values["gateway_tracking_id"] = tracking_id

    result = await db.execute(
        update(Order)
        .where(Order.id == order_id, Order.status.in_(list(FAILABLE_STATUSES)))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    changed = result.rowcount == 1
    if changed:
        logger.info("Order %s marked failed", order_id)
    return changed


async def mark_failed_by_reference(db: AsyncSession, reference: str) -> bool:
    order = await find_by_merchant_reference(db, reference)
    if order is None:
        return False
    return await transition_to_failed(db, order.id)
