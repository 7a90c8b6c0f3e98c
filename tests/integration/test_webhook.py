"""Integration tests for the Pesapal IPN endpoint (GET and POST /payments/webhook)."""

import pytest
from services.store_service.errors import GatewayError
from services.store_service.models import (
    InventoryRecord,
    Order,
    OrderStatus,
    PaymentProvider,
)
from services.store_service.outcomes import OutcomeKind
from sqlalchemy import select
from tests.factories import OrderFactory, OrderItemFactory, PaymentOutcomeFactory


async def _seed_order(db, catalog) -> Order:
    order = OrderFactory.create(
        delivery_zone_id=catalog.zone.id,
        payment_provider=PaymentProvider.PESAPAL,
        gateway_tracking_id="track-123",
    )
    db.add(order)
    await db.flush()
    db.add(OrderItemFactory.create(order.id, catalog.product.id))
    await db.commit()
    return order


def _ipn(order, notification_type="IPNCHANGE") -> dict:
    return {
        "OrderTrackingId": "track-123",
        "OrderMerchantReference": order.merchant_reference,
        "OrderNotificationType": notification_type,
    }


def _status_outcome(order, kind=OutcomeKind.SUCCESS, amount_minor=115000):
    return PaymentOutcomeFactory.create(
        kind=kind,
        amount_minor=amount_minor,
        merchant_reference=order.merchant_reference,
        external_id="track-123",
        raw_status="Completed" if kind == OutcomeKind.SUCCESS else "Failed",
    )


async def _status(db, order_id) -> OrderStatus:
    result = await db.execute(select(Order.status).where(Order.id == order_id))
    return result.scalar_one()


async def _stock(db, record_id) -> int:
    result = await db.execute(
        select(InventoryRecord.quantity).where(InventoryRecord.id == record_id)
    )
    return result.scalar_one()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_ipn_marks_order_paid(client, db_session, catalog, fake_pesapal, mock_emails):
    order = await _seed_order(db_session, catalog)
    fake_pesapal.status_outcome = _status_outcome(order)

    response = await client.get("/payments/webhook", params=_ipn(order))

    assert response.status_code == 200
    assert response.json() == {
        "orderNotificationType": "IPNCHANGE",
        "orderTrackingId": "track-123",
        "status": 200,
    }
    assert fake_pesapal.status_queries == ["track-123"]
    assert await _status(db_session, order.id) == OrderStatus.PAID
    mock_emails.customer.assert_awaited_once()
    mock_emails.admin.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_duplicate_ipn_is_acknowledged_once(
    client, db_session, catalog, fake_pesapal, mock_emails
):
    order = await _seed_order(db_session, catalog)
    fake_pesapal.status_outcome = _status_outcome(order)

    await client.get("/payments/webhook", params=_ipn(order))
    assert await _stock(db_session, catalog.inventory.id) == 9

    response = await client.get("/payments/webhook", params=_ipn(order))

    assert response.status_code == 200
    assert response.json()["message"] == "Order already processed"
    assert response.json()["status"] == 200
    assert await _stock(db_session, catalog.inventory.id) == 9
    assert await _status(db_session, order.id) == OrderStatus.PAID
    assert mock_emails.customer.await_count == 1
    assert mock_emails.admin.await_count == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_post_ipn_with_json_body(client, db_session, catalog, fake_pesapal, mock_emails):
    order = await _seed_order(db_session, catalog)
    fake_pesapal.status_outcome = _status_outcome(order)

    response = await client.post("/payments/webhook", json=_ipn(order))

    assert response.status_code == 200
    assert response.json()["orderTrackingId"] == "track-123"
    assert await _status(db_session, order.id) == OrderStatus.PAID


@pytest.mark.asyncio
@pytest.mark.integration
async def test_post_ipn_with_form_body(client, db_session, catalog, fake_pesapal, mock_emails):
    order = await _seed_order(db_session, catalog)
    fake_pesapal.status_outcome = _status_outcome(order)

    response = await client.post("/payments/webhook", data=_ipn(order))

    assert response.status_code == 200
    assert await _status(db_session, order.id) == OrderStatus.PAID


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ipn_missing_fields(client, fake_pesapal):
    response = await client.get(
        "/payments/webhook", params={"OrderNotificationType": "IPNCHANGE"}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Missing tracking ID or merchant reference"}
    assert fake_pesapal.status_queries == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ipn_for_unknown_order(client, fake_pesapal):
    fake_pesapal.status_outcome = PaymentOutcomeFactory.create(merchant_reference="ORD-0-ghost")

    response = await client.get(
        "/payments/webhook",
        params={"OrderTrackingId": "track-9", "OrderMerchantReference": "ORD-0-ghost"},
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Order not found"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ipn_amount_mismatch_acknowledged_with_error_status(
    client, db_session, catalog, fake_pesapal, mock_emails
):
    order = await _seed_order(db_session, catalog)
    fake_pesapal.status_outcome = _status_outcome(order, amount_minor=90000)

    response = await client.get("/payments/webhook", params=_ipn(order))

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == 500
    assert data["message"] == "Payment amount mismatch"
    assert await _status(db_session, order.id) == OrderStatus.PENDING
    mock_emails.customer.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ipn_gateway_outage_asks_for_retry(client, db_session, catalog, fake_pesapal):
    order = await _seed_order(db_session, catalog)
    fake_pesapal.error = GatewayError("Pesapal status check failed", provider="pesapal")

    response = await client.get("/payments/webhook", params=_ipn(order))

    assert response.status_code == 502
    assert await _status(db_session, order.id) == OrderStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ipn_failed_payment_marks_order_failed(
    client, db_session, catalog, fake_pesapal, mock_emails
):
    order = await _seed_order(db_session, catalog)
    fake_pesapal.status_outcome = _status_outcome(order, kind=OutcomeKind.FAILED)

    response = await client.get("/payments/webhook", params=_ipn(order))

    assert response.status_code == 200
    assert response.json()["status"] == 200
    assert await _status(db_session, order.id) == OrderStatus.FAILED
    mock_emails.customer.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ipn_reference_mismatch_rejected(
    client, db_session, catalog, fake_pesapal, mock_emails
):
    order = await _seed_order(db_session, catalog)
    fake_pesapal.status_outcome = PaymentOutcomeFactory.create(
        merchant_reference="ORD-0-someone-else"
    )

    response = await client.get("/payments/webhook", params=_ipn(order))

    assert response.status_code == 400
    assert response.json() == {"error": "Reference mismatch"}
    assert await _status(db_session, order.id) == OrderStatus.PENDING
