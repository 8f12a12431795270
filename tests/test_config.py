"""Configuration loading and settings validation."""

from __future__ import annotations

from decimal import Decimal

import pytest

from pagosettle.config import load_config, validate_settings
from pagosettle.errors import InvalidConfiguration

from tests.factories import RECIPIENT, make_test_config

TOML = f"""
[settings]
recipient_address = "{RECIPIENT}"
multiplier = "1.03"
api_key = "FILEKEY"

[monitor]
poll_interval = 6
poll_jitter_max = 1.5
log_level = "debug"

[chain]
preset = "ethereum"
token_decimals = 18

[indexer]
api_url = "https://api.example.test"
page_size = 500
max_retries = 5
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("RECIPIENT", "MULTIPLIER", "API_KEY", "CHAIN", "PROXY_URL"):
        monkeypatch.delenv(f"PAGOSETTLE_{name}", raising=False)


def test_defaults_without_file():
    cfg = load_config(None)
    assert cfg.recipient_address == ""
    assert cfg.multiplier == Decimal("1.0")
    assert cfg.poll_interval == 4.0
    assert cfg.chain.preset == "bsc"
    assert cfg.indexer.page_size == 1000


def test_missing_file_falls_back_to_defaults(tmp_path):
    cfg = load_config(tmp_path / "nope.toml")
    assert cfg.api_key == ""


def test_load_from_toml(tmp_path):
    path = tmp_path / "pagosettle.toml"
    path.write_text(TOML)

    cfg = load_config(path)

    assert cfg.recipient_address == RECIPIENT
    assert cfg.multiplier == Decimal("1.03")
    assert cfg.api_key == "FILEKEY"
    assert cfg.poll_interval == 6.0
    assert cfg.poll_jitter_min == 0.25
    assert cfg.poll_jitter_max == 1.5
    assert cfg.log_level == "debug"
    assert cfg.chain.to_parameters().token_decimals == 18
    assert cfg.chain.to_parameters().chain_id == 1
    assert cfg.indexer.api_url == "https://api.example.test"
    assert cfg.indexer.page_size == 500
    assert cfg.indexer.max_retries == 5
    assert cfg.indexer.max_pages == 10


def test_float_multiplier_in_toml_is_exact(tmp_path):
    path = tmp_path / "c.toml"
    path.write_text("[settings]\nmultiplier = 1.03\n")
    assert load_config(path).multiplier == Decimal("1.03")


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "pagosettle.toml"
    path.write_text(TOML)
    monkeypatch.setenv("PAGOSETTLE_API_KEY", "ENVKEY")
    monkeypatch.setenv("PAGOSETTLE_MULTIPLIER", "1,05")
    monkeypatch.setenv("PAGOSETTLE_CHAIN", "bsc")
    monkeypatch.setenv("PAGOSETTLE_PROXY_URL", "https://proxy.example/api")

    cfg = load_config(path)

    assert cfg.api_key == "ENVKEY"
    assert cfg.multiplier == Decimal("1.05")
    assert cfg.chain.preset == "bsc"
    assert cfg.indexer.proxy_url == "https://proxy.example/api"


def test_bad_multiplier_env(monkeypatch):
    monkeypatch.setenv("PAGOSETTLE_MULTIPLIER", "lots")
    with pytest.raises(InvalidConfiguration, match="multiplier"):
        load_config(None)


# ── validate_settings ─────────────────────────────────────────────


def test_valid_settings_pass():
    validate_settings(make_test_config())


def test_proxy_replaces_api_key():
    cfg = make_test_config(api_key="")
    cfg.indexer.proxy_url = "https://proxy.example/api"
    validate_settings(cfg)


@pytest.mark.parametrize(
    "overrides, message",
    [
        (dict(recipient_address=""), "recipient"),
        (dict(recipient_address="0x1234"), "recipient"),
        (dict(recipient_address="1111111111111111111111111111111111111111"), "recipient"),
        (dict(multiplier=Decimal("0.97")), "multiplier"),
        (dict(api_key=""), "API key"),
    ],
)
def test_invalid_settings(overrides, message):
    with pytest.raises(InvalidConfiguration, match=message):
        validate_settings(make_test_config(**overrides))


def test_invalid_paging():
    cfg = make_test_config()
    cfg.indexer.page_size = 0
    with pytest.raises(InvalidConfiguration, match="page_size"):
        validate_settings(cfg)


def test_invalid_chain():
    cfg = make_test_config()
    cfg.chain.preset = "dogecoin"
    with pytest.raises(InvalidConfiguration, match="preset"):
        validate_settings(cfg)
