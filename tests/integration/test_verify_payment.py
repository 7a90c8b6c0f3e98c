"""Integration tests for POST /payments/verify-payment (inline checkout)."""

import pytest
from services.store_service.errors import GatewayError
from services.store_service.models import InventoryRecord, Order, OrderStatus
from services.store_service.outcomes import OutcomeKind
from sqlalchemy import select
from tests.factories import OrderFactory, OrderItemFactory, PaymentOutcomeFactory


async def _seed_order(db, catalog, quantity=1) -> Order:
    order = OrderFactory.create(delivery_zone_id=catalog.zone.id)
    db.add(order)
    await db.flush()
    db.add(OrderItemFactory.create(order.id, catalog.product.id, quantity=quantity))
    await db.commit()
    return order


async def _status(db, order_id) -> OrderStatus:
    result = await db.execute(select(Order.status).where(Order.id == order_id))
    return result.scalar_one()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_marks_order_paid(client, db_session, catalog, fake_paystack, mock_emails):
    order = await _seed_order(db_session, catalog, quantity=2)
    fake_paystack.outcome = PaymentOutcomeFactory.create(
        merchant_reference=order.merchant_reference
    )

    response = await client.post(
        "/payments/verify-payment", json={"reference": order.merchant_reference}
    )

    assert response.status_code == 200
    assert response.json() == {"status": "success", "orderId": str(order.id)}
    assert fake_paystack.verified == [order.merchant_reference]
    assert await _status(db_session, order.id) == OrderStatus.PAID

    stock = await db_session.execute(
        select(InventoryRecord.quantity).where(InventoryRecord.id == catalog.inventory.id)
    )
    assert stock.scalar_one() == 8
    mock_emails.customer.assert_awaited_once()
    mock_emails.admin.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_replay_reports_already_processed(
    client, db_session, catalog, fake_paystack, mock_emails
):
    order = await _seed_order(db_session, catalog)
    fake_paystack.outcome = PaymentOutcomeFactory.create(
        merchant_reference=order.merchant_reference
    )
    body = {"reference": order.merchant_reference}

    await client.post("/payments/verify-payment", json=body)
    response = await client.post("/payments/verify-payment", json=body)

    assert response.status_code == 200
    assert response.json() == {
        "status": "success",
        "orderId": str(order.id),
        "message": "Order already processed",
    }
    assert mock_emails.customer.await_count == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_underpayment_returns_conflict(
    client, db_session, catalog, fake_paystack, mock_emails
):
    order = await _seed_order(db_session, catalog)
    fake_paystack.outcome = PaymentOutcomeFactory.create(
        amount_minor=90000, merchant_reference=order.merchant_reference
    )

    response = await client.post(
        "/payments/verify-payment", json={"reference": order.merchant_reference}
    )

    assert response.status_code == 409
    assert response.json() == {"error": "Payment amount mismatch"}
    assert await _status(db_session, order.id) == OrderStatus.FAILED
    mock_emails.customer.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_unsuccessful_payment(client, db_session, catalog, fake_paystack, mock_emails):
    order = await _seed_order(db_session, catalog)
    fake_paystack.outcome = PaymentOutcomeFactory.create(
        kind=OutcomeKind.FAILED,
        raw_status="abandoned",
        merchant_reference=order.merchant_reference,
    )

    response = await client.post(
        "/payments/verify-payment", json={"reference": order.merchant_reference}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Payment verification failed", "status": "abandoned"}
    assert await _status(db_session, order.id) == OrderStatus.FAILED


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_requires_reference(client, fake_paystack):
    response = await client.post("/payments/verify-payment", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"
    assert fake_paystack.verified == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_gateway_outage(client, db_session, catalog, fake_paystack):
    order = await _seed_order(db_session, catalog)
    fake_paystack.error = GatewayError(
        "Verification failed",
        provider="paystack",
        upstream_status=503,
        response_data={"message": "upstream detail"},
    )

    response = await client.post(
        "/payments/verify-payment", json={"reference": order.merchant_reference}
    )

    assert response.status_code == 502
    assert response.json() == {"error": "Verification failed"}
    assert await _status(db_session, order.id) == OrderStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_unknown_order(client, fake_paystack, mock_emails):
    fake_paystack.outcome = PaymentOutcomeFactory.create(merchant_reference="ORD-0-ghost")

    response = await client.post("/payments/verify-payment", json={"reference": "ORD-0-ghost"})

    assert response.status_code == 404
    assert response.json() == {"error": "Order not found"}
