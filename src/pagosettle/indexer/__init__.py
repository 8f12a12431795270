"""Indexer integration components."""

from pagosettle.indexer.backoff import RetryPolicy
from pagosettle.indexer.etherscan import EtherscanIndexerClient

__all__ = ["RetryPolicy", "EtherscanIndexerClient"]
