"""Shared fixtures for pagosettle tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from pagosettle.models.chain import ChainParameters
from pagosettle.settlement.session import SettlementSession

from tests.factories import RECIPIENT, make_descriptor, make_test_config
from tests.mocks import MockIndexer

BSC = ChainParameters.bsc()


def explorer_link(kind: str, id: str, label: str | None = None) -> str:
    """Build an HTML anchor to bscscan for the report."""
    url = f"{BSC.explorer_base_url}/{kind}/{id}"
    text = label or f"{id[:8]}...{id[-4:]}"
    return f'<a href="{url}" target="_blank">{text}</a>'


# ── Report metadata & explorer links ─────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = f"{BSC.display_name} (chain {BSC.chain_id})"
    meta["Token Contract"] = BSC.token_contract_id
    meta["Recipient"] = RECIPIENT


def pytest_html_results_summary(prefix, summary, postfix):
    """Inject clickable explorer links into the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>BSC Explorer Links</strong><br/>"
        f'Token: {explorer_link("token", BSC.token_contract_id, BSC.token_contract_id)}<br/>'
        f'Recipient: {explorer_link("address", RECIPIENT, RECIPIENT)}'
        "</div>"
    )


@pytest.fixture
def test_config():
    """Default MonitorConfig for tests."""
    return make_test_config()


@pytest.fixture
def chain():
    return BSC


@pytest.fixture
def mock_indexer():
    return MockIndexer(block_height=1000)


@pytest.fixture
def descriptor():
    """10.00 requested on BSC, anchored at block 1000."""
    return make_descriptor(requested="10.00", anchor_block=1000)


@pytest.fixture
async def session(descriptor, mock_indexer, test_config):
    """SettlementSession over the mock indexer; stopped after the test."""
    s = SettlementSession.from_config(descriptor, mock_indexer, test_config)
    yield s
    await s.stop()
