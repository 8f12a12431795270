"""Settlement status, snapshots, and one-shot controller events."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from pagosettle.models.payment import PaymentDescriptor, TransferEvent


class SettlementStatus(str, Enum):
    MONITORING = "monitoring"  # nothing received yet
    PARTIALLY_PAID = "partially_paid"  # 0 < received < requested
    COMPLETED = "completed"  # terminal, polling stopped
    ERROR = "error"  # last cycle failed; recovers on next success


def classify(received: Decimal, requested: Decimal) -> SettlementStatus:
    """Status as a pure function of the received and requested amounts."""
    if received >= requested:
        return SettlementStatus.COMPLETED
    if received > 0:
        return SettlementStatus.PARTIALLY_PAID
    return SettlementStatus.MONITORING


@dataclass(frozen=True)
class SettlementSnapshot:
    """Immutable view of a session's state after a completed poll cycle."""

    status: SettlementStatus
    requested_amount: Decimal
    received_total: Decimal
    next_from_block: int
    events: tuple[TransferEvent, ...] = ()
    last_error: str | None = None
    cycles: int = 0

    @property
    def remaining(self) -> Decimal:
        return max(Decimal(0), self.requested_amount - self.received_total)

    @property
    def is_terminal(self) -> bool:
        return self.status is SettlementStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "requested_amount": str(self.requested_amount),
            "received_total": str(self.received_total),
            "remaining": str(self.remaining),
            "next_from_block": self.next_from_block,
            "events": [e.to_dict() for e in self.events],
            "last_error": self.last_error,
            "cycles": self.cycles,
        }


# ---------------------------------------------------------------------------
# One-shot events consumed by the presentation layer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaymentBuilt:
    """A payment request was built and is ready to be shown."""

    descriptor: PaymentDescriptor
    payment_uri: str
    explorer_url: str


@dataclass(frozen=True)
class PaymentCompleted:
    """The monitored payment reached the requested amount."""

    descriptor: PaymentDescriptor
    snapshot: SettlementSnapshot


SessionEvent = Union[PaymentBuilt, PaymentCompleted]
