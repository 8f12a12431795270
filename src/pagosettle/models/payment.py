"""Payment request and transfer event models."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from pagosettle.amounts import CENTS, floor_to_scale, from_minor_units
from pagosettle.models.chain import ChainParameters


@dataclass(frozen=True)
class PaymentDescriptor:
    """A built payment request, handed to exactly one settlement session."""

    requested_amount: Decimal  # floored to cents
    encoded_amount: int  # minor units of the token
    recipient: str
    anchor_block: int  # block height at build time
    chain: ChainParameters
    input_amount: Decimal
    multiplier: Decimal


@dataclass(frozen=True)
class TransferEvent:
    """An inbound token transfer as reported by the indexer."""

    tx_hash: str
    from_address: str
    to_address: str
    block_number: int
    transaction_index: int
    raw_value: int
    token_decimals: int
    value: Decimal  # raw_value scaled by token_decimals, floored to cents
    log_index: int | None = None
    timestamp: int | None = None  # informational; never used for filtering

    @property
    def dedup_key(self) -> tuple:
        """Identity of this transfer across re-reads of the same block.

        Without a log index, distinct Transfer logs in one transaction are told
        apart by their addresses, value and position.
        """
        if self.log_index is not None:
            return (self.tx_hash.lower(), self.log_index)
        return (
            self.tx_hash.lower(),
            self.from_address.lower(),
            self.to_address.lower(),
            self.raw_value,
            self.transaction_index,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tx_hash": self.tx_hash,
            "from": self.from_address,
            "to": self.to_address,
            "block_number": self.block_number,
            "transaction_index": self.transaction_index,
            "raw_value": str(self.raw_value),
            "value": str(self.value),
            "log_index": self.log_index,
            "timestamp": self.timestamp,
        }


def _int_field(record: Mapping[str, Any], key: str) -> int | None:
    """Read ``key`` as an int (decimal string, hex string, or int)."""
    raw = record.get(key)
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise ValueError(f"{key} is not an integer: {raw!r}")
    if isinstance(raw, int):
        return raw
    text = str(raw).strip()
    return int(text, 16) if text.lower().startswith("0x") else int(text)


def _str_field(record: Mapping[str, Any], key: str) -> str:
    raw = record.get(key)
    if isinstance(raw, str) and raw:
        return raw
    raise KeyError(key)


def parse_transfer(record: Mapping[str, Any], default_decimals: int) -> TransferEvent:
    """Parse one raw indexer record into a TransferEvent.

    Expects Etherscan ``tokentx`` field names. ``tokenDecimal`` in the record
    wins over ``default_decimals``. Raises KeyError/ValueError on malformed records.
    """
    block_number = _int_field(record, "blockNumber")
    raw_value = _int_field(record, "value")
    if block_number is None or raw_value is None:
        raise KeyError("blockNumber" if block_number is None else "value")
    if block_number < 0 or raw_value < 0:
        raise ValueError("negative blockNumber or value")

    decimals = _int_field(record, "tokenDecimal")
    if decimals is None:
        decimals = default_decimals

    return TransferEvent(
        tx_hash=_str_field(record, "hash"),
        from_address=_str_field(record, "from"),
        to_address=_str_field(record, "to"),
        block_number=block_number,
        transaction_index=_int_field(record, "transactionIndex") or 0,
        raw_value=raw_value,
        token_decimals=decimals,
        value=floor_to_scale(from_minor_units(raw_value, decimals), CENTS),
        log_index=_int_field(record, "logIndex"),
        timestamp=_int_field(record, "timeStamp"),
    )
