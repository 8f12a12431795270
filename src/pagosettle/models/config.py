"""Configuration models for the settlement monitor."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from pagosettle.errors import InvalidConfiguration
from pagosettle.models.chain import PRESETS, ChainParameters


@dataclass
class ChainConfig:
    """Target network selection. Overrides apply on top of the preset."""

    preset: str = "bsc"  # "bsc" | "ethereum" | "custom"
    chain_id: int | None = None
    token_contract_id: str = ""
    token_decimals: int | None = None
    explorer_base_url: str = ""
    name: str = ""

    def to_parameters(self) -> ChainParameters:
        if self.preset == "custom":
            if self.chain_id is None or self.token_decimals is None:
                raise InvalidConfiguration(
                    "custom chain needs chain_id and token_decimals"
                )
            return ChainParameters(
                chain_id=self.chain_id,
                token_contract_id=self.token_contract_id,
                token_decimals=self.token_decimals,
                explorer_base_url=self.explorer_base_url,
                name=self.name,
            )

        factory = PRESETS.get(self.preset)
        if factory is None:
            raise InvalidConfiguration(f"unknown chain preset: {self.preset!r}")
        base = factory()
        return ChainParameters(
            chain_id=self.chain_id or base.chain_id,
            token_contract_id=self.token_contract_id or base.token_contract_id,
            token_decimals=(
                base.token_decimals if self.token_decimals is None else self.token_decimals
            ),
            explorer_base_url=self.explorer_base_url or base.explorer_base_url,
            name=self.name or base.name,
        )


@dataclass
class IndexerConfig:
    """Indexer transport and rate-limit settings."""

    api_url: str = "https://api.etherscan.io"
    proxy_url: str = ""  # server-side proxy that injects the API key
    request_timeout: float = 10.0  # seconds per HTTP call
    page_size: int = 1000
    max_pages: int = 10
    page_pause: float = 0.3  # seconds between pages
    max_retries: int = 3
    backoff_base: float = 0.5  # seconds, doubled each attempt
    backoff_max: float = 8.0
    backoff_jitter: float = 0.25  # max random seconds added to each backoff


@dataclass
class MonitorConfig:
    """Complete configuration."""

    # Settings (read at build time, never mutated by the core)
    recipient_address: str = ""
    multiplier: Decimal = Decimal("1.0")
    api_key: str = ""

    # Polling schedule
    poll_interval: float = 4.0  # seconds
    poll_jitter_min: float = 0.25
    poll_jitter_max: float = 0.75

    log_level: str = "info"

    chain: ChainConfig = field(default_factory=ChainConfig)
    indexer: IndexerConfig = field(default_factory=IndexerConfig)
