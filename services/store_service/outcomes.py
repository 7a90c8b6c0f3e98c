"""Normalised payment outcome shared by both gateway clients.

The reconciliation engine only ever sees a ``PaymentOutcome``; raw gateway
JSON stays inside the client that fetched it.
"""

import enum
from dataclasses import dataclass
from typing import Optional


class OutcomeKind(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


@dataclass(frozen=True)
class PaymentOutcome:
    """Canonical result of a verify / status query."""

    kind: OutcomeKind
    amount_minor: int
    currency: Optional[str]
    external_id: Optional[str]  # Paystack transaction id / Pesapal tracking id
    merchant_reference: Optional[str]
    raw_status: str  # as reported by the gateway, for logs and client messages

    @property
    def succeeded(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    @property
    def failed(self) -> bool:
        return self.kind == OutcomeKind.FAILED
