"""Pesapal IPN endpoint.

Pesapal calls this URL (GET or POST, as registered) whenever a transaction
changes. The notification is not signed, so it is only a hint: the status
is re-queried from Pesapal before anything changes.
"""

import json

from fastapi import APIRouter, Depends, Request
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.pesapal_client import PesapalClient, get_pesapal_client
from services.store_service.schemas import WebhookAck
from services.store_service.services.reconciliation import (
    ReconciliationState,
    handle_gateway_notification,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["webhooks"])

IPN_FIELDS = ("OrderTrackingId", "OrderMerchantReference", "OrderNotificationType")


async def _read_notification(request: Request) -> dict:
    """Collect IPN fields from the query string, falling back to the body."""
    params = {name: request.query_params.get(name) for name in IPN_FIELDS}
    if all(params.values()) or request.method != "POST":
        return params

    body: dict = {}
    content_type = request.headers.get("content-type", "")
    try:
        if "application/json" in content_type:
            raw = await request.body()
            parsed = json.loads(raw) if raw else {}
            body = parsed if isinstance(parsed, dict) else {}
        elif "form" in content_type:
            body = dict(await request.form())
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning(f"Unreadable IPN body: {e!r}")

    for name in IPN_FIELDS:
        if not params[name] and body.get(name):
            params[name] = str(body[name])
    return params


@router.api_route(
    "/webhook",
    methods=["GET", "POST"],
    response_model=WebhookAck,
    response_model_exclude_none=True,
)
async def pesapal_ipn(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
    pesapal: PesapalClient = Depends(get_pesapal_client),
):
    """
    Handle a Pesapal IPN and return the acknowledgement Pesapal expects.

    Permanent problems (unknown order, malformed call) answer 4xx; gateway
    outages answer 502 so Pesapal retries later.
    """
    params = await _read_notification(request)
    tracking_id = params["OrderTrackingId"]
    notification_type = params["OrderNotificationType"]

    result = await handle_gateway_notification(
        db,
        pesapal,
        tracking_id=tracking_id,
        merchant_reference=params["OrderMerchantReference"],
        notification_type=notification_type,
    )

    ack = WebhookAck(
        orderNotificationType=notification_type,
        orderTrackingId=tracking_id,
        status=200,
    )
    if result.state == ReconciliationState.ALREADY_PROCESSED:
        ack.message = result.message
    elif result.state == ReconciliationState.AMOUNT_MISMATCH:
        ack.status = 500
        ack.message = result.message
    return ack
