"""Payment request building and settlement monitoring."""

from pagosettle.settlement.builder import build_payment_request, requested_amount
from pagosettle.settlement.session import SettlementSession
from pagosettle.settlement.uri import explorer_url, payment_uri

__all__ = [
    "build_payment_request", "requested_amount",
    "SettlementSession",
    "explorer_url", "payment_uri",
]
