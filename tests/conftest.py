"""Shared fixtures: fake gateway clients, a seeded catalog, patched e-mail."""

from dataclasses import dataclass
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from services.store_service.models import DeliveryZone, InventoryRecord, Product
from services.store_service.outcomes import PaymentOutcome
from services.store_service.pesapal_client import SubmittedOrder
from tests.factories import DeliveryZoneFactory, InventoryFactory, ProductFactory

# ---------------------------------------------------------------------------
# Gateway fakes
# ---------------------------------------------------------------------------


class FakePaystackClient:
    """Stands in for PaystackClient; set ``outcome`` or ``error`` per test."""

    def __init__(self):
        self.outcome: Optional[PaymentOutcome] = None
        self.error: Optional[Exception] = None
        self.verified: list[str] = []

    async def verify_transaction(self, reference: str) -> PaymentOutcome:
        self.verified.append(reference)
        if self.error:
            raise self.error
        return self.outcome


class FakePesapalClient:
    """Stands in for PesapalClient; set ``status_outcome`` or ``error`` per test."""

    def __init__(self):
        self.status_outcome: Optional[PaymentOutcome] = None
        self.error: Optional[Exception] = None
        self.submitted: list[dict] = []
        self.status_queries: list[str] = []

    async def authenticate(self) -> str:
        if self.error:
            raise self.error
        return "fake-token"

    async def submit_order_request(self, **kwargs) -> SubmittedOrder:
        if self.error:
            raise self.error
        self.submitted.append(kwargs)
        return SubmittedOrder(
            redirect_url="https://cybqa.pesapal.com/iframe?OrderTrackingId=track-123",
            order_tracking_id="track-123",
            merchant_reference=kwargs["merchant_reference"],
        )

    async def get_transaction_status(
        self, order_tracking_id: str, token: Optional[str] = None
    ) -> PaymentOutcome:
        self.status_queries.append(order_tracking_id)
        if self.error:
            raise self.error
        return self.status_outcome


@pytest.fixture
def fake_paystack() -> FakePaystackClient:
    return FakePaystackClient()


@pytest.fixture
def fake_pesapal() -> FakePesapalClient:
    return FakePesapalClient()


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@dataclass
class SeededCatalog:
    product: Product
    inventory: InventoryRecord
    zone: DeliveryZone


@pytest_asyncio.fixture
async def catalog(db_session) -> SeededCatalog:
    """One product at KES 1,000 with 10 in stock and a KES 150 delivery zone."""
    product = ProductFactory.create()
    zone = DeliveryZoneFactory.create()
    db_session.add_all([product, zone])
    await db_session.flush()

    inventory = InventoryFactory.create(product.id, quantity=10)
    db_session.add(inventory)
    await db_session.commit()
    return SeededCatalog(product=product, inventory=inventory, zone=zone)


# ---------------------------------------------------------------------------
# E-mail
# ---------------------------------------------------------------------------


@dataclass
class EmailMocks:
    customer: AsyncMock
    admin: AsyncMock


@pytest.fixture
def mock_emails():
    """Patch both paid-order e-mails where the notifier looks them up."""
    with patch(
        "services.store_service.services.notifications.send_order_confirmation_email",
        new_callable=AsyncMock,
        return_value=True,
    ) as customer, patch(
        "services.store_service.services.notifications.send_admin_new_order_email",
        new_callable=AsyncMock,
        return_value=True,
    ) as admin:
        yield EmailMocks(customer=customer, admin=admin)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    db_session, fake_paystack, fake_pesapal
) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient bound to the store app, with the DB and both
    gateway clients overridden.
    """
    from libs.db.session import get_async_db
    from services.store_service.app.main import app
    from services.store_service.paystack_client import get_paystack_client
    from services.store_service.pesapal_client import get_pesapal_client

    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_paystack_client] = lambda: fake_paystack
    app.dependency_overrides[get_pesapal_client] = lambda: fake_pesapal

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
