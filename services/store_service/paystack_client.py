"""
Paystack API client for the inline (popup) checkout flow.

The browser completes payment with Paystack's popup and hands the
transaction reference back to us; the server then confirms it with
``verify_transaction`` before any order state changes.
"""

from typing import Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.store_service.errors import GatewayError, GatewayNotConfigured
from services.store_service.outcomes import OutcomeKind, PaymentOutcome

logger = get_logger(__name__)

PROVIDER = "paystack"

_FAILED_STATUSES = {"failed", "abandoned", "reversed"}


def outcome_from_paystack(data: dict) -> PaymentOutcome:
    """Map the ``data`` object of a verify response onto a PaymentOutcome."""
    raw_status = str(data.get("status") or "").lower()
    if raw_status == "success":
        kind = OutcomeKind.SUCCESS
    elif raw_status in _FAILED_STATUSES:
        kind = OutcomeKind.FAILED
    else:
        kind = OutcomeKind.PENDING

    external_id = data.get("id")
    return PaymentOutcome(
        kind=kind,
        amount_minor=int(data.get("amount") or 0),  # already in minor units
        currency=data.get("currency"),
        external_id=str(external_id) if external_id is not None else None,
        merchant_reference=data.get("reference"),
        raw_status=raw_status or "unknown",
    )


class PaystackClient:
    """Async client for the Paystack transaction verification API."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.PAYSTACK_SECRET_KEY
        if not self.secret_key:
            raise GatewayNotConfigured(PROVIDER, "PAYSTACK_SECRET_KEY")
        self.base_url = (base_url or settings.PAYSTACK_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.GATEWAY_TIMEOUT_SECONDS
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict = None,
        json_data: dict = None,
    ) -> dict:
        """Make an async request to Paystack API."""
        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    params=params,
                    json=json_data,
                )
        except httpx.HTTPError as e:
            logger.error(f"Paystack request to {endpoint} failed: {e!r}")
            raise GatewayError("Verification failed", provider=PROVIDER) from e

        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text}

        if not response.is_success:
            logger.error(f"Paystack API error: {response.status_code} - {data}")
            raise GatewayError(
                "Verification failed",
                provider=PROVIDER,
                upstream_status=response.status_code,
                response_data=data,
            )

        if not data.get("status"):
            logger.error(f"Paystack request rejected: {data}")
            raise GatewayError(
                "Verification failed",
                provider=PROVIDER,
                upstream_status=response.status_code,
                response_data=data,
            )

        return data

    async def verify_transaction(self, reference: str) -> PaymentOutcome:
        """
        Confirm a transaction by its reference.

        Args:
            reference: The merchant reference the popup was opened with

        Returns:
            PaymentOutcome with amount in minor units and the Paystack
            transaction id as ``external_id``

        Raises:
            GatewayError: If Paystack cannot be reached or rejects the call
        """
        data = await self._request("GET", f"/transaction/verify/{reference}")
        outcome = outcome_from_paystack(data.get("data") or {})
        logger.info(
            "Paystack verify %s -> %s (%d minor)",
            reference,
            outcome.raw_status,
            outcome.amount_minor,
        )
        return outcome


def get_paystack_client() -> PaystackClient:
    """FastAPI dependency returning a PaystackClient."""
    return PaystackClient()
