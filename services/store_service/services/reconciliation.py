"""Payment reconciliation.

Two ways to learn an order was paid:

- Inline checkout (Paystack): the browser posts the reference back and we
  verify it with the gateway (``verify_client_payment``).
- Hosted page (Pesapal): the gateway calls our IPN URL and we re-query the
  canonical status (``handle_gateway_notification``).

Either may arrive first, twice, or concurrently. Both end in
``_settle_successful_payment``, where the guarded paid transition picks the
single caller that decrements stock and sends the e-mails.
"""

import enum
import uuid
from dataclasses import dataclass
from typing import Optional

from libs.common.config import get_settings
from libs.common.currency import to_minor_units, within_tolerance
from libs.common.logging import get_logger
from services.store_service.errors import (
    AmountMismatch,
    MalformedNotification,
    OrderNotFound,
    PaymentNotSuccessful,
    PersistenceError,
    ReferenceMismatch,
)
from services.store_service.models import Order, PaymentProvider
from services.store_service.outcomes import PaymentOutcome
from services.store_service.paystack_client import PaystackClient
from services.store_service.pesapal_client import PesapalClient
from services.store_service.services.inventory import apply_decrement
from services.store_service.services.ledger import (
    find_by_merchant_reference,
    get_order_items,
    mark_failed_by_reference,
    transition_to_failed,
    transition_to_paid,
)
from services.store_service.services.notifications import notify_order_paid
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class ReconciliationState(str, enum.Enum):
    PAID = "paid"
    ALREADY_PROCESSED = "already_processed"
    AMOUNT_MISMATCH = "amount_mismatch"
    FAILED = "failed"
    PENDING = "pending"


@dataclass(frozen=True)
class ReconciliationResult:
    order_id: Optional[uuid.UUID]
    state: ReconciliationState
    message: Optional[str] = None


def amount_matches(order: Order, outcome: PaymentOutcome) -> bool:
    """Paid amount within the configured tolerance of the order total."""
    return within_tolerance(
        outcome.amount_minor,
        to_minor_units(order.total_amount),
        get_settings().AMOUNT_TOLERANCE_MINOR,
    )


async def _settle_successful_payment(
    db: AsyncSession,
    order: Order,
    outcome: PaymentOutcome,
    provider: PaymentProvider,
) -> ReconciliationResult:
    """
    Apply a gateway-confirmed success to an order.

    Order of checks: already processed, amount, claim. The claim and the
    inventory decrement commit together; e-mails go out after the commit
    and only from the caller that won the claim.
    """
    if order.is_processed:
        logger.info(
            f"Order {order.merchant_reference} already processed (status={order.status.value}), skipping"
        )
        return ReconciliationResult(
            order.id, ReconciliationState.ALREADY_PROCESSED, "Order already processed"
        )

    if not amount_matches(order, outcome):
        logger.error(
            f"Amount mismatch for {order.merchant_reference}: "
            f"expected {to_minor_units(order.total_amount)}, paid {outcome.amount_minor}",
            extra={
                "extra_fields": {
                    "order_id": str(order.id),
                    "merchant_reference": order.merchant_reference,
                    "expected_minor": to_minor_units(order.total_amount),
                    "paid_minor": outcome.amount_minor,
                    "provider": provider.value,
                }
            },
        )
        return ReconciliationResult(
            order.id, ReconciliationState.AMOUNT_MISMATCH, "Payment amount mismatch"
        )

    order_id, reference = order.id, order.merchant_reference
    try:
        claimed = await transition_to_paid(
            db, order_id, tracking_id=outcome.external_id, provider=provider
        )
        if not claimed:
            logger.info(f"Order {reference} was claimed by another caller, skipping")
            return ReconciliationResult(
                order_id,
                ReconciliationState.ALREADY_PROCESSED,
                "Order already processed",
            )

        adjusted = await apply_decrement(db, order_id)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to mark order {reference} paid: {e!r}")
        raise PersistenceError("Failed to update order status") from e

    await db.refresh(order)
    logger.info(
        f"Order {order.merchant_reference} paid via {provider.value}; "
        f"{adjusted} inventory row(s) adjusted",
        extra={
            "extra_fields": {
                "order_id": str(order.id),
                "merchant_reference": order.merchant_reference,
                "tracking_id": order.gateway_tracking_id,
            }
        },
    )

    items = await get_order_items(db, order.id)
    await notify_order_paid(order, items, outcome)

    return ReconciliationResult(order.id, ReconciliationState.PAID)


async def verify_client_payment(
    db: AsyncSession, paystack: PaystackClient, reference: str
) -> ReconciliationResult:
    """
    Confirm an inline checkout the browser reports as paid.

    Raises:
        PaymentNotSuccessful: Gateway says the transaction did not succeed
        OrderNotFound: No order carries this reference
        AmountMismatch: Paid amount outside tolerance; the order is marked failed
        GatewayError: Gateway unreachable or rejected the call
    """
    outcome = await paystack.verify_transaction(reference)

    if not outcome.succeeded:
        await mark_failed_by_reference(db, reference)
        logger.info(f"Paystack reports {reference} as {outcome.raw_status}")
        raise PaymentNotSuccessful(outcome.raw_status)

    order = await find_by_merchant_reference(db, reference)
    if order is None:
        logger.error(f"Verified payment {reference} has no matching order")
        raise OrderNotFound(reference)

    if outcome.merchant_reference and outcome.merchant_reference != reference:
        raise ReferenceMismatch(reference, outcome.merchant_reference)

    result = await _settle_successful_payment(
        db, order, outcome, PaymentProvider.PAYSTACK
    )
    if result.state == ReconciliationState.AMOUNT_MISMATCH:
        await transition_to_failed(db, order.id)
        raise AmountMismatch(to_minor_units(order.total_amount), outcome.amount_minor)
    return result


async def handle_gateway_notification(
    db: AsyncSession,
    pesapal: PesapalClient,
    tracking_id: Optional[str],
    merchant_reference: Optional[str],
    notification_type: Optional[str] = None,
) -> ReconciliationResult:
    """
    Process an IPN. The payload only says which transaction changed; the
    status and amount always come from a fresh status query.

    Raises:
        MalformedNotification: Tracking id or merchant reference missing
        OrderNotFound: No order carries the merchant reference
        ReferenceMismatch: Gateway reports a different merchant reference
        GatewayError: Gateway unreachable or rejected the call
    """
    if not tracking_id or not merchant_reference:
        raise MalformedNotification()

    logger.info(
        f"IPN {notification_type or '-'} for {merchant_reference} (tracking {tracking_id})"
    )
    outcome = await pesapal.get_transaction_status(tracking_id)

    order = await find_by_merchant_reference(db, merchant_reference)
    if order is None:
        logger.error(f"Order not found for merchant ref: {merchant_reference}")
        raise OrderNotFound(merchant_reference)

    if outcome.merchant_reference != merchant_reference:
        logger.error(
            f"Mismatch in merchant reference: notified {merchant_reference}, "
            f"gateway reports {outcome.merchant_reference}"
        )
        raise ReferenceMismatch(merchant_reference, outcome.merchant_reference)

    if outcome.succeeded:
        return await _settle_successful_payment(
            db, order, outcome, PaymentProvider.PESAPAL
        )

    if outcome.failed:
        await transition_to_failed(db, order.id, tracking_id=tracking_id)
        return ReconciliationResult(order.id, ReconciliationState.FAILED)

    logger.info(
        f"Pesapal status {outcome.raw_status} for {merchant_reference}; no transition"
    )
    return ReconciliationResult(order.id, ReconciliationState.PENDING)
