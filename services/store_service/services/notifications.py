"""Paid-order e-mails: customer confirmation and the admin notice."""

from libs.common.config import get_settings
from libs.common.currency import from_minor_units
from libs.common.emails.store import (
    send_admin_new_order_email,
    send_order_confirmation_email,
)
from libs.common.logging import get_logger
from services.store_service.models import Order, OrderItem
from services.store_service.outcomes import PaymentOutcome

logger = get_logger(__name__)


async def notify_order_paid(
    order: Order, items: list[OrderItem], outcome: PaymentOutcome
) -> None:
    """Send both e-mails. A failure in one never blocks the other or the caller."""
    settings = get_settings()
    provider = order.payment_provider.value if order.payment_provider else "unknown"
    tracking_id = order.gateway_tracking_id or outcome.external_id

    try:
        sent = await send_order_confirmation_email(
            to_email=order.customer_email,
            customer_name=order.customer_name,
            order_ref=order.short_ref,
            items=[
                {
                    "name": item.product_name,
                    "quantity": item.quantity,
                    "line_total": item.line_total,
                }
                for item in items
            ],
            subtotal=order.subtotal_amount,
            delivery_fee=order.delivery_fee,
            total=order.total_amount,
            currency=order.currency,
            tracking_id=tracking_id,
            delivery_type=order.delivery_type.value,
            delivery_address=order.delivery_address,
            store_name=settings.STORE_NAME,
        )
        if not sent:
            logger.warning(f"Order confirmation not sent for {order.merchant_reference}")
    except Exception as e:
        logger.error(
            f"Order confirmation e-mail failed for {order.merchant_reference}: {e!r}",
            exc_info=True,
        )

    try:
        sent = await send_admin_new_order_email(
            to_email=settings.ADMIN_EMAIL,
            order_ref=order.short_ref,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            total=from_minor_units(outcome.amount_minor),
            currency=outcome.currency or order.currency,
            provider=provider,
            tracking_id=tracking_id,
        )
        if not sent:
            logger.warning(f"Admin order notice not sent for {order.merchant_reference}")
    except Exception as e:
        logger.error(
            f"Admin order e-mail failed for {order.merchant_reference}: {e!r}",
            exc_info=True,
        )
