"""Exception hierarchy for pagosettle.

All exceptions inherit from SettlementError for easy catching.
"""

from __future__ import annotations


class SettlementError(Exception):
    """Base exception for all pagosettle errors."""


class InvalidAmount(SettlementError, ValueError):
    """Amount is negative, non-finite, unparseable, or too precise."""


class InvalidConfiguration(SettlementError, ValueError):
    """Chain parameters, multiplier, recipient, or scale are invalid."""


class AnchorUnavailable(SettlementError):
    """The current block height could not be fetched for a new request."""


class UpstreamError(SettlementError):
    """Base for failures talking to the indexer."""


class UpstreamUnavailable(UpstreamError):
    """Transport failure or a hard (non-throttle) HTTP error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamTimeout(UpstreamUnavailable):
    """The request did not complete within its timeout."""


class UpstreamThrottled(UpstreamError):
    """The indexer signalled rate limiting. Transient and recoverable."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamProtocolError(UpstreamError):
    """The indexer answered with a malformed or unexpected payload."""
