"""
Pesapal API v3 client for the hosted-page checkout flow.

Provides async methods for:
- Requesting an access token (cached until shortly before it expires)
- Submitting an order request and getting the hosted-page redirect URL
- Querying the canonical status of a transaction by tracking id
- Registering and listing IPN (webhook) URLs
"""

import time
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import List, Optional

import httpx
from libs.common.config import get_settings
from libs.common.currency import to_minor_units
from libs.common.datetime_utils import parse_gateway_datetime
from libs.common.logging import get_logger
from services.store_service.errors import GatewayError, GatewayNotConfigured
from services.store_service.outcomes import OutcomeKind, PaymentOutcome

logger = get_logger(__name__)

PROVIDER = "pesapal"

# Tokens live for five minutes; refresh a little early.
TOKEN_SAFETY_MARGIN_SECONDS = 30
DEFAULT_TOKEN_TTL_SECONDS = 240


@dataclass
class SubmittedOrder:
    """Result of SubmitOrderRequest."""

    redirect_url: str
    order_tracking_id: Optional[str]
    merchant_reference: Optional[str]


@dataclass
class IpnRegistration:
    """A registered IPN endpoint."""

    ipn_id: str
    url: str
    notification_type: Optional[str] = None


def outcome_from_pesapal(data: dict, order_tracking_id: str) -> PaymentOutcome:
    """Map a GetTransactionStatus body onto a PaymentOutcome.

    Pesapal statuses are Completed, Failed, Invalid and Reversed. Only the
    first two are decisive; everything else leaves the order where it is.
    """
    description = str(data.get("payment_status_description") or "")
    normalized = description.strip().lower()
    if normalized == "completed":
        kind = OutcomeKind.SUCCESS
    elif normalized == "failed":
        kind = OutcomeKind.FAILED
    else:
        kind = OutcomeKind.PENDING

    amount = data.get("amount")
    return PaymentOutcome(
        kind=kind,
        amount_minor=to_minor_units(amount) if amount is not None else 0,
        currency=data.get("currency"),
        external_id=order_tracking_id,
        merchant_reference=data.get("merchant_reference"),
        raw_status=description or "unknown",
    )


def _error_in_body(data) -> Optional[dict]:
    """Pesapal reports some failures with HTTP 200 and a populated ``error`` object."""
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict) and any(error.get(k) for k in ("code", "message")):
        return error
    if isinstance(error, str) and error:
        return {"message": error}
    return None


class PesapalClient:
    """Async client for the Pesapal v3 REST API."""

    def __init__(
        self,
        consumer_key: Optional[str] = None,
        consumer_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.consumer_key = consumer_key or settings.PESAPAL_CONSUMER_KEY
        self.consumer_secret = consumer_secret or settings.PESAPAL_CONSUMER_SECRET
        self.base_url = (base_url or settings.pesapal_base_url).rstrip("/")
        self.timeout = timeout or settings.GATEWAY_TIMEOUT_SECONDS
        self._transport = transport

        self._token: Optional[str] = None
        self._token_expires_at: float = 0.0

    async def _request(
        self,
        method: str,
        endpoint: str,
        token: Optional[str] = None,
        params: dict = None,
        json_data: dict = None,
        action: str = "Pesapal request",
    ):
        """Make an async request to the Pesapal API and return the decoded body."""
        url = f"{self.base_url}{endpoint}"
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=headers,
                    params=params,
                    json=json_data,
                )
        except httpx.HTTPError as e:
            logger.error(f"{action} failed: {e!r}")
            raise GatewayError(f"{action} failed", provider=PROVIDER) from e

        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text}

        if not response.is_success:
            logger.error(f"{action} error: {response.status_code} - {data}")
            raise GatewayError(
                f"{action} failed",
                provider=PROVIDER,
                upstream_status=response.status_code,
                response_data=data if isinstance(data, dict) else {"body": data},
            )

        error = _error_in_body(data)
        if error:
            logger.error(f"{action} rejected: {error}")
            raise GatewayError(
                f"{action} failed",
                provider=PROVIDER,
                upstream_status=response.status_code,
                response_data=data,
            )

        return data

    # =========================================================================
    # Authentication
    # =========================================================================

    async def authenticate(self) -> str:
        """
        Exchange the consumer key/secret for a bearer token.

        The token is reused for the lifetime of this client until it is
        about to expire.

        Raises:
            GatewayNotConfigured: If credentials are missing
            GatewayError: If Pesapal rejects the credentials
        """
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        if not self.consumer_key or not self.consumer_secret:
            raise GatewayNotConfigured(PROVIDER, "PESAPAL_CONSUMER_KEY")

        data = await self._request(
            "POST",
            "/api/Auth/RequestToken",
            json_data={
                "consumer_key": self.consumer_key,
                "consumer_secret": self.consumer_secret,
            },
            action="Pesapal authentication",
        )

        token = data.get("token")
        if str(data.get("status")) != "200" or not token:
            raise GatewayError(
                "Pesapal authentication failed",
                provider=PROVIDER,
                response_data=data,
            )

        ttl = DEFAULT_TOKEN_TTL_SECONDS
        expires_at = parse_gateway_datetime(data.get("expiryDate"))
        if expires_at is not None:
            remaining = expires_at.timestamp() - time.time()
            ttl = max(0, remaining - TOKEN_SAFETY_MARGIN_SECONDS)

        self._token = token
        self._token_expires_at = time.monotonic() + ttl
        return token

    # =========================================================================
    # Transactions
    # =========================================================================

    async def submit_order_request(
        self,
        merchant_reference: str,
        amount: Decimal,
        currency: str,
        description: str,
        callback_url: str,
        notification_id: str,
        billing_address: dict,
        token: Optional[str] = None,
    ) -> SubmittedOrder:
        """
        Register an order with Pesapal and get the hosted payment page URL.

        Args:
            merchant_reference: Our unique order reference (Pesapal ``id``)
            amount: Order total in major units
            currency: ISO currency code
            description: Shown to the customer on the payment page
            callback_url: Where the customer is redirected after paying
            notification_id: Registered IPN id that receives status changes
            billing_address: Pesapal billing_address object

        Returns:
            SubmittedOrder with redirect_url and order_tracking_id
        """
        token = token or await self.authenticate()
        data = await self._request(
            "POST",
            "/api/Transactions/SubmitOrderRequest",
            token=token,
            json_data={
                "id": merchant_reference,
                "currency": currency,
                "amount": float(amount),
                "description": description[:100],
                "callback_url": callback_url,
                "notification_id": notification_id,
                "billing_address": billing_address,
            },
            action="Pesapal submit order",
        )

        redirect_url = data.get("redirect_url")
        if not redirect_url:
            raise GatewayError(
                "Failed to get redirect URL from Pesapal",
                provider=PROVIDER,
                response_data=data,
            )

        return SubmittedOrder(
            redirect_url=redirect_url,
            order_tracking_id=data.get("order_tracking_id"),
            merchant_reference=data.get("merchant_reference"),
        )

    async def get_transaction_status(
        self, order_tracking_id: str, token: Optional[str] = None
    ) -> PaymentOutcome:
        """
        Query the canonical status of a transaction.

        This is the only source of truth for IPN handling: the notification
        itself is unauthenticated and only tells us which transaction to ask
        about.
        """
        token = token or await self.authenticate()
        data = await self._request(
            "GET",
            "/api/Transactions/GetTransactionStatus",
            token=token,
            params={"orderTrackingId": order_tracking_id},
            action="Pesapal status check",
        )
        outcome = outcome_from_pesapal(data, order_tracking_id)
        logger.info(
            "Pesapal status %s -> %s (%d minor, ref=%s)",
            order_tracking_id,
            outcome.raw_status,
            outcome.amount_minor,
            outcome.merchant_reference,
        )
        return outcome

    # =========================================================================
    # IPN registration
    # =========================================================================

    async def register_ipn(
        self, url: str, notification_type: str = "POST"
    ) -> IpnRegistration:
        """
        Register a webhook URL; the returned ipn_id goes into PESAPAL_IPN_ID.
        """
        token = await self.authenticate()
        data = await self._request(
            "POST",
            "/api/URLSetup/RegisterIPN",
            token=token,
            json_data={"url": url, "ipn_notification_type": notification_type},
            action="Pesapal IPN registration",
        )
        ipn_id = data.get("ipn_id")
        if not ipn_id:
            raise GatewayError(
                "Pesapal IPN registration failed",
                provider=PROVIDER,
                response_data=data,
            )
        return IpnRegistration(
            ipn_id=ipn_id,
            url=data.get("url", url),
            notification_type=notification_type,
        )

    async def list_ipns(self) -> List[IpnRegistration]:
        """List the IPN URLs registered for this merchant account."""
        token = await self.authenticate()
        data = await self._request(
            "GET",
            "/api/URLSetup/GetIpnList",
            token=token,
            action="Pesapal IPN listing",
        )
        entries = data if isinstance(data, list) else []
        return [
            IpnRegistration(
                ipn_id=entry.get("ipn_id", ""),
                url=entry.get("url", ""),
                notification_type=entry.get("ipn_notification_type_description"),
            )
            for entry in entries
        ]


@lru_cache
def get_pesapal_client() -> PesapalClient:
    """FastAPI dependency returning the process-wide PesapalClient (shares the token cache)."""
    return PesapalClient()
