"""Storefront payments router: order creation and client-side verification."""

from fastapi import APIRouter, Depends, Request, status
from libs.common.config import get_settings
from libs.common.currency import to_minor_units
from libs.common.logging import get_logger
from libs.common.rate_limit import checkout_limit
from libs.db.session import get_async_db
from services.store_service.errors import GatewayNotConfigured, ValidationError
from services.store_service.models import DeliveryType, Order, PaymentProvider
from services.store_service.paystack_client import PaystackClient, get_paystack_client
from services.store_service.pesapal_client import PesapalClient, get_pesapal_client
from services.store_service.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    InitializeResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from services.store_service.services.ledger import attach_tracking_id, create_order
from services.store_service.services.pricing import (
    compute_totals,
    generate_merchant_reference,
    resolve_delivery_zone,
)
from services.store_service.services.reconciliation import verify_client_payment
from services.store_service.services.stock import validate_cart
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def _parse_delivery_type(value: str) -> DeliveryType:
    try:
        return DeliveryType(value)
    except ValueError:
        raise ValidationError("Invalid delivery type")


async def _place_pending_order(
    db: AsyncSession, payload: CreateOrderRequest, provider: PaymentProvider
) -> Order:
    """Validate the cart, price it and write the pending order."""
    delivery_type = _parse_delivery_type(payload.delivery_type)
    if delivery_type == DeliveryType.DELIVERY and not payload.delivery_zone_id:
        raise ValidationError("Delivery zone is required for delivery orders")

    cart = await validate_cart(db, payload.cart_items)

    zone = None
    if delivery_type == DeliveryType.DELIVERY:
        zone = await resolve_delivery_zone(db, payload.delivery_zone_id)

    totals = compute_totals(cart.lines, delivery_type, zone)
    customer = payload.customer_info

    return await create_order(
        db,
        merchant_reference=generate_merchant_reference(),
        customer_name=customer.full_name,
        customer_email=customer.email,
        customer_phone=customer.phone,
        delivery_type=delivery_type,
        zone=zone,
        delivery_address=payload.delivery_address,
        lines=cart.lines,
        totals=totals,
        currency=get_settings().STORE_CURRENCY,
        provider=provider,
    )


# ============================================================================
# INLINE CHECKOUT (Paystack)
# ============================================================================


@router.post(
    "/create-order",
    response_model=CreateOrderResponse,
    status_code=status.HTTP_201_CREATED,
)
@checkout_limit
async def create_inline_order(
    request: Request,
    payload: CreateOrderRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Create a pending order for the inline payment popup.

    The returned amount is in minor units, ready to hand to the popup.
    """
    order = await _place_pending_order(db, payload, PaymentProvider.PAYSTACK)

    return CreateOrderResponse(
        reference=order.merchant_reference,
        amount=to_minor_units(order.total_amount),
        email=order.customer_email,
        currency=order.currency,
        orderId=order.id,
    )


@router.post(
    "/verify-payment",
    response_model=VerifyPaymentResponse,
    response_model_exclude_none=True,
)
async def verify_payment(
    payload: VerifyPaymentRequest,
    db: AsyncSession = Depends(get_async_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    """Confirm an inline payment with the gateway and settle the order."""
    result = await verify_client_payment(db, paystack, payload.reference)
    return VerifyPaymentResponse(
        status="success", orderId=result.order_id, message=result.message
    )


# ============================================================================
# HOSTED PAGE (Pesapal)
# ============================================================================


@router.post("/initialize", response_model=InitializeResponse)
@checkout_limit
async def initialize_hosted_payment(
    request: Request,
    payload: CreateOrderRequest,
    db: AsyncSession = Depends(get_async_db),
    pesapal: PesapalClient = Depends(get_pesapal_client),
):
    """
    Create a pending order and register it with the hosted payment page.

    If the gateway call fails the pending order stays behind unpaid; it is
    never charged and never touches inventory.
    """
    settings = get_settings()
    if not settings.PESAPAL_IPN_ID:
        logger.error("PESAPAL_IPN_ID is not configured")
        raise GatewayNotConfigured("pesapal", "PESAPAL_IPN_ID")

    order = await _place_pending_order(db, payload, PaymentProvider.PESAPAL)
    customer = payload.customer_info

    origin = request.headers.get("origin") or settings.FRONTEND_URL
    token = await pesapal.authenticate()
    submitted = await pesapal.submit_order_request(
        merchant_reference=order.merchant_reference,
        amount=order.total_amount,
        currency=order.currency,
        description=f"Payment for Order #{order.short_ref}",
        callback_url=f"{origin.rstrip('/')}/cart?status=completed",
        notification_id=settings.PESAPAL_IPN_ID,
        billing_address={
            "email_address": customer.email,
            "phone_number": customer.phone or "",
            "country_code": settings.STORE_COUNTRY_CODE,
            "first_name": customer.first_name,
            "middle_name": "",
            "last_name": customer.last_name,
            "line_1": order.delivery_address or "",
            "line_2": order.delivery_area or "",
            "city": "",
            "state": "",
            "postal_code": "",
            "zip_code": "",
        },
        token=token,
    )

    await attach_tracking_id(db, order.id, submitted.order_tracking_id)
    logger.info(
        f"Hosted payment page created for {order.merchant_reference}",
        extra={
            "extra_fields": {
                "order_id": str(order.id),
                "tracking_id": submitted.order_tracking_id,
            }
        },
    )
    return InitializeResponse(link=submitted.redirect_url)
