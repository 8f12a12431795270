"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
import re
from decimal import Decimal
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from pagosettle.amounts import to_decimal
from pagosettle.errors import InvalidAmount, InvalidConfiguration
from pagosettle.models.config import ChainConfig, IndexerConfig, MonitorConfig

_EVM_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


def _decimal(value: object, name: str) -> Decimal:
    try:
        return to_decimal(value)  # type: ignore[arg-type]
    except InvalidAmount:
        raise InvalidConfiguration(f"{name} is not a number: {value!r}") from None


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "PAGOSETTLE_",
) -> MonitorConfig:
    """Load configuration from a TOML file and environment variables.

    Priority (highest wins):
        1. Environment variables (PAGOSETTLE_RECIPIENT, etc.)
        2. TOML config file
        3. Defaults from MonitorConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = MonitorConfig()

    # ── Settings section ───────────────────────────────────
    settings = raw.get("settings", {})
    if v := settings.get("recipient_address"):
        cfg.recipient_address = str(v)
    if (v := settings.get("multiplier")) is not None:
        cfg.multiplier = _decimal(v, "multiplier")
    if v := settings.get("api_key"):
        cfg.api_key = str(v)

    # ── Monitor section ────────────────────────────────────
    monitor = raw.get("monitor", {})
    if (v := monitor.get("poll_interval")) is not None:
        cfg.poll_interval = float(v)
    if (v := monitor.get("poll_jitter_min")) is not None:
        cfg.poll_jitter_min = float(v)
    if (v := monitor.get("poll_jitter_max")) is not None:
        cfg.poll_jitter_max = float(v)
    if v := monitor.get("log_level"):
        cfg.log_level = str(v)

    # ── Chain section ──────────────────────────────────────
    chain = raw.get("chain", {})
    cfg.chain = ChainConfig(
        preset=str(chain.get("preset", "bsc")),
        chain_id=chain.get("chain_id"),
        token_contract_id=str(chain.get("token_contract_id", "")),
        token_decimals=chain.get("token_decimals"),
        explorer_base_url=str(chain.get("explorer_base_url", "")),
        name=str(chain.get("name", "")),
    )

    # ── Indexer section ────────────────────────────────────
    indexer = raw.get("indexer", {})
    defaults = IndexerConfig()
    cfg.indexer = IndexerConfig(
        api_url=str(indexer.get("api_url", defaults.api_url)),
        proxy_url=str(indexer.get("proxy_url", defaults.proxy_url)),
        request_timeout=float(indexer.get("request_timeout", defaults.request_timeout)),
        page_size=int(indexer.get("page_size", defaults.page_size)),
        max_pages=int(indexer.get("max_pages", defaults.max_pages)),
        page_pause=float(indexer.get("page_pause", defaults.page_pause)),
        max_retries=int(indexer.get("max_retries", defaults.max_retries)),
        backoff_base=float(indexer.get("backoff_base", defaults.backoff_base)),
        backoff_max=float(indexer.get("backoff_max", defaults.backoff_max)),
        backoff_jitter=float(indexer.get("backoff_jitter", defaults.backoff_jitter)),
    )

    # ── Environment variable overrides (highest priority) ──
    if recipient := os.environ.get(f"{env_prefix}RECIPIENT"):
        cfg.recipient_address = recipient
    if multiplier := os.environ.get(f"{env_prefix}MULTIPLIER"):
        cfg.multiplier = _decimal(multiplier, "multiplier")
    if api_key := os.environ.get(f"{env_prefix}API_KEY"):
        cfg.api_key = api_key
    if preset := os.environ.get(f"{env_prefix}CHAIN"):
        cfg.chain.preset = preset
    if proxy := os.environ.get(f"{env_prefix}PROXY_URL"):
        cfg.indexer.proxy_url = proxy

    return cfg


def validate_settings(cfg: MonitorConfig) -> None:
    """Check the settings a payment request depends on.

    Raises InvalidConfiguration naming the first problem found.
    """
    if not _EVM_ADDRESS.match(cfg.recipient_address or ""):
        raise InvalidConfiguration(
            f"invalid recipient address: {cfg.recipient_address or '(not set)'}"
        )
    if not cfg.multiplier.is_finite() or cfg.multiplier < 1:
        raise InvalidConfiguration(f"multiplier must be >= 1.0, got {cfg.multiplier}")
    if cfg.indexer.page_size <= 0 or cfg.indexer.max_pages <= 0:
        raise InvalidConfiguration("page_size and max_pages must be positive")
    if not cfg.api_key and not cfg.indexer.proxy_url:
        raise InvalidConfiguration("either an API key or a proxy_url is required")
    cfg.chain.to_parameters()
