"""Protocol interfaces for pagosettle components."""

from pagosettle.interfaces.indexer import IndexerClient, RawTransfer
from pagosettle.interfaces.monitor import PaymentMonitor

__all__ = [
    "IndexerClient", "RawTransfer",
    "PaymentMonitor",
]
