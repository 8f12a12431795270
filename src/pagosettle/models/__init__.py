"""Data models for pagosettle."""

from pagosettle.models.chain import ChainParameters
from pagosettle.models.config import ChainConfig, IndexerConfig, MonitorConfig
from pagosettle.models.payment import PaymentDescriptor, TransferEvent, parse_transfer
from pagosettle.models.settlement import (
    PaymentBuilt,
    PaymentCompleted,
    SessionEvent,
    SettlementSnapshot,
    SettlementStatus,
    classify,
)

__all__ = [
    "ChainParameters",
    "ChainConfig", "IndexerConfig", "MonitorConfig",
    "PaymentDescriptor", "TransferEvent", "parse_transfer",
    "PaymentBuilt", "PaymentCompleted", "SessionEvent",
    "SettlementSnapshot", "SettlementStatus", "classify",
]
