"""Etherscan V2 indexer client - block height and ERC-20 transfer history."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from pagosettle.errors import (
    UpstreamProtocolError,
    UpstreamThrottled,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from pagosettle.indexer.backoff import RetryPolicy
from pagosettle.interfaces.indexer import RawTransfer
from pagosettle.models.chain import ChainParameters
from pagosettle.models.config import IndexerConfig

log = logging.getLogger(__name__)

# Open-ended upper bound accepted by the tokentx endpoint
END_BLOCK = 9_999_999_999

_NO_RESULTS = ("no transactions found", "no records found")


def _retry_after(resp: httpx.Response) -> float | None:
    value = resp.headers.get("Retry-After")
    if value and value.strip().isdigit():
        return float(value)
    return None


def _is_rate_limited(data: dict[str, Any]) -> bool:
    """Etherscan reports rate limiting in-band with HTTP 200."""
    texts = [data.get("result"), data.get("message")]
    error = data.get("error")
    if isinstance(error, dict):
        texts.append(error.get("message"))
    return any(isinstance(t, str) and "rate limit" in t.lower() for t in texts)


class EtherscanIndexerClient:
    """Implements IndexerClient against the Etherscan V2 multichain API.

    Talks either directly to ``{api_url}/v2/api`` with an API key, or to a
    server-side proxy that injects the key (POST ``{chainId, queryParams}``).
    Throttled and timed-out requests are retried per ``retry``; every other
    failure propagates immediately.
    """

    def __init__(
        self,
        chain: ChainParameters,
        api_url: str = "https://api.etherscan.io",
        api_key: str = "",
        proxy_url: str = "",
        timeout: float = 10.0,
        page_pause: float = 0.3,
        retry: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._chain = chain
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._proxy_url = proxy_url
        self._page_pause = page_pause
        self._retry = retry or RetryPolicy()
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        chain: ChainParameters,
        cfg: IndexerConfig,
        api_key: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> EtherscanIndexerClient:
        return cls(
            chain,
            api_url=cfg.api_url,
            api_key=api_key,
            proxy_url=cfg.proxy_url,
            timeout=cfg.request_timeout,
            page_pause=cfg.page_pause,
            retry=RetryPolicy(
                max_retries=cfg.max_retries,
                base_delay=cfg.backoff_base,
                max_delay=cfg.backoff_max,
                jitter=cfg.backoff_jitter,
            ),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> EtherscanIndexerClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Transport ─────────────────────────────────────────

    async def _send(self, params: dict[str, str]) -> dict[str, Any]:
        """One HTTP round trip, with errors mapped onto the upstream taxonomy."""
        action = params.get("action", "?")
        try:
            if self._proxy_url:
                resp = await self._client.post(
                    self._proxy_url,
                    json={"chainId": self._chain.chain_id, "queryParams": params},
                )
            else:
                query = {"chainid": str(self._chain.chain_id), **params}
                if self._api_key:
                    query["apikey"] = self._api_key
                resp = await self._client.get(f"{self._api_url}/v2/api", params=query)
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(f"{action}: request timed out ({exc!r})") from exc
        except httpx.TransportError as exc:
            raise UpstreamUnavailable(f"{action}: transport error: {exc}") from exc

        if resp.status_code == 429:
            raise UpstreamThrottled(f"{action}: HTTP 429", retry_after=_retry_after(resp))
        if resp.status_code >= 400:
            raise UpstreamUnavailable(
                f"{action}: HTTP {resp.status_code}", status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamProtocolError(f"{action}: response is not JSON") from exc
        if not isinstance(data, dict):
            raise UpstreamProtocolError(f"{action}: expected a JSON object")
        if _is_rate_limited(data):
            raise UpstreamThrottled(f"{action}: {data.get('result') or data.get('message')}")
        return data

    # ── IndexerClient ─────────────────────────────────────

    async def current_block_height(self) -> int:
        params = {"module": "proxy", "action": "eth_blockNumber"}
        data = await self._retry.run(lambda: self._send(params), "eth_blockNumber")

        error = data.get("error")
        if error:
            msg = error.get("message") if isinstance(error, dict) else str(error)
            raise UpstreamProtocolError(f"eth_blockNumber error: {msg}")

        result = data.get("result")
        if not isinstance(result, str):
            raise UpstreamProtocolError(f"eth_blockNumber: unexpected result {result!r}")
        try:
            height = int(result, 16)
        except ValueError:
            raise UpstreamProtocolError(
                f"eth_blockNumber: result is not hex: {result[:80]!r}"
            ) from None
        log.debug("Current block on %s: %d", self._chain.display_name, height)
        return height

    async def _transfer_page(
        self,
        address: str,
        contract_id: str,
        from_block: int,
        page: int,
        page_size: int,
    ) -> list[RawTransfer]:
        params = {
            "module": "account",
            "action": "tokentx",
            "contractaddress": contract_id,
            "address": address,
            "startblock": str(from_block),
            "endblock": str(END_BLOCK),
            "sort": "asc",
            "page": str(page),
            "offset": str(page_size),
        }
        data = await self._retry.run(lambda: self._send(params), f"tokentx page {page}")

        status = str(data.get("status", ""))
        message = str(data.get("message", ""))
        result = data.get("result")

        if status == "1" and isinstance(result, list):
            return [r for r in result if isinstance(r, dict)]
        if status == "0" and (
            message.lower().startswith(_NO_RESULTS) or result == []
        ):
            return []
        raise UpstreamProtocolError(f"tokentx: {message or 'unexpected response'} - {result!r:.120}")

    async def token_transfers_from(
        self,
        address: str,
        contract_id: str,
        from_block: int,
        page_size: int = 1000,
        max_pages: int = 10,
    ) -> list[RawTransfer]:
        results: list[RawTransfer] = []
        for page in range(1, max_pages + 1):
            if page > 1 and self._page_pause > 0:
                await asyncio.sleep(self._page_pause)

            batch = await self._transfer_page(address, contract_id, from_block, page, page_size)
            results.extend(batch)
            log.debug(
                "tokentx page %d from block %d: %d records", page, from_block, len(batch),
            )
            if len(batch) < page_size:
                break

        return results
