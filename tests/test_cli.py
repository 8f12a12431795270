"""CLI commands via click's CliRunner (no network)."""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest
from click.testing import CliRunner

from pagosettle import cli as cli_module
from pagosettle.cli import cli
from pagosettle.errors import AnchorUnavailable
from pagosettle.models.settlement import SettlementSnapshot, SettlementStatus

from tests.factories import RECIPIENT


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv("PAGOSETTLE_RECIPIENT", RECIPIENT)
    monkeypatch.setenv("PAGOSETTLE_API_KEY", "TESTKEY")
    monkeypatch.delenv("PAGOSETTLE_MULTIPLIER", raising=False)
    monkeypatch.delenv("PAGOSETTLE_CHAIN", raising=False)
    monkeypatch.delenv("PAGOSETTLE_PROXY_URL", raising=False)


def _snapshot(status: SettlementStatus, received: str) -> SettlementSnapshot:
    return SettlementSnapshot(
        status=status,
        requested_amount=Decimal("10.00"),
        received_total=Decimal(received),
        next_from_block=1001,
    )


def test_status_shows_chain(env):
    result = CliRunner().invoke(cli, ["status"])
    assert result.exit_code == 0
    assert "BSC (id 56)" in result.output
    assert RECIPIENT in result.output
    assert "***configured***" in result.output


def test_request_requires_recipient(monkeypatch):
    monkeypatch.delenv("PAGOSETTLE_RECIPIENT", raising=False)
    monkeypatch.setenv("PAGOSETTLE_API_KEY", "TESTKEY")
    result = CliRunner().invoke(cli, ["request", "10"])
    assert result.exit_code == 1
    assert "invalid recipient address" in result.output


def test_watch_completed(env, monkeypatch):
    async def fake_run_watch(cfg, amount, timeout, on_built=None, on_snapshot=None):
        assert amount == "10"
        snap = _snapshot(SettlementStatus.COMPLETED, "10.00")
        on_snapshot(snap)
        return snap

    monkeypatch.setattr(cli_module, "run_watch", fake_run_watch)
    result = CliRunner().invoke(cli, ["watch", "10"])

    assert result.exit_code == 0
    assert "[completed] received 10.00 / 10.00" in result.output
    assert "Payment completed: 10.00 received." in result.output


def test_watch_incomplete_exits_2(env, monkeypatch):
    async def fake_run_watch(cfg, amount, timeout, on_built=None, on_snapshot=None):
        assert timeout == 5.0
        return _snapshot(SettlementStatus.PARTIALLY_PAID, "4.00")

    monkeypatch.setattr(cli_module, "run_watch", fake_run_watch)
    result = CliRunner().invoke(cli, ["watch", "10", "--timeout", "5"])

    assert result.exit_code == 2
    assert "Payment not completed." in result.output


def test_watch_error_exits_1(env, monkeypatch):
    async def fake_run_watch(cfg, amount, timeout, on_built=None, on_snapshot=None):
        raise AnchorUnavailable("could not fetch current block")

    monkeypatch.setattr(cli_module, "run_watch", fake_run_watch)
    result = CliRunner().invoke(cli, ["watch", "10"])

    assert result.exit_code == 1
    assert "Error: could not fetch current block" in result.output


@pytest.fixture
def root_level():
    root = logging.getLogger()
    saved = root.level
    yield root
    root.setLevel(saved)


def test_bad_config_value_is_reported(env, monkeypatch):
    monkeypatch.setenv("PAGOSETTLE_MULTIPLIER", "abc")
    result = CliRunner().invoke(cli, ["status"])

    assert result.exit_code == 1
    assert "Error: multiplier is not a number: 'abc'" in result.output


def test_log_level_from_config(env, tmp_path, root_level):
    path = tmp_path / "pagosettle.toml"
    path.write_text('[monitor]\nlog_level = "warning"\n')

    result = CliRunner().invoke(cli, ["-c", str(path), "status"])

    assert result.exit_code == 0
    assert root_level.level == logging.WARNING


def test_verbose_wins_over_log_level(env, tmp_path, root_level):
    path = tmp_path / "pagosettle.toml"
    path.write_text('[monitor]\nlog_level = "error"\n')
    root_level.setLevel(logging.INFO)

    result = CliRunner().invoke(cli, ["-v", "-c", str(path), "status"])

    assert result.exit_code == 0
    assert root_level.level != logging.ERROR


def test_unknown_log_level(env, tmp_path, root_level):
    path = tmp_path / "pagosettle.toml"
    path.write_text('[monitor]\nlog_level = "chatty"\n')

    result = CliRunner().invoke(cli, ["-c", str(path), "status"])

    assert result.exit_code == 1
    assert "unknown log_level: 'chatty'" in result.output
