"""IndexerClient protocol - block height and token-transfer queries."""

from __future__ import annotations

from typing import Any, Protocol

RawTransfer = dict[str, Any]


class IndexerClient(Protocol):
    """Reads an externally indexed token-transfer log.

    Implementations raise the ``pagosettle.errors`` upstream taxonomy:
    UpstreamUnavailable, UpstreamThrottled, UpstreamProtocolError.
    """

    async def current_block_height(self) -> int:
        """Latest block height known to the indexer."""
        ...

    async def token_transfers_from(
        self,
        address: str,
        contract_id: str,
        from_block: int,
        page_size: int,
        max_pages: int,
    ) -> list[RawTransfer]:
        """Raw transfer records touching ``address`` from ``from_block`` on.

        Records come back in ascending block order. Paging stops on a short
        page or after ``max_pages`` pages.
        """
        ...
