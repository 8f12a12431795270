"""CLI entry point for pagosettle."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from pagosettle.config import load_config, validate_settings
from pagosettle.errors import InvalidConfiguration, SettlementError
from pagosettle.indexer.etherscan import EtherscanIndexerClient
from pagosettle.models.settlement import PaymentBuilt, SettlementSnapshot
from pagosettle.runner import run_watch
from pagosettle.settlement.builder import build_payment_request
from pagosettle.settlement.uri import explorer_url, payment_uri


def _fail(exc: Exception) -> None:
    click.echo(f"Error: {exc}", err=True)
    sys.exit(1)


def _apply_log_level(name: str) -> None:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        _fail(InvalidConfiguration(f"unknown log_level: {name!r}"))
    logging.getLogger().setLevel(level)


def _load(ctx: click.Context, require_settings: bool = True):
    try:
        cfg = load_config(ctx.obj["config_path"])
    except SettlementError as exc:
        _fail(exc)
    if not ctx.obj["verbose"]:
        _apply_log_level(cfg.log_level)
    if require_settings:
        try:
            validate_settings(cfg)
        except SettlementError as exc:
            click.echo("Set PAGOSETTLE_RECIPIENT / PAGOSETTLE_API_KEY or the config file.", err=True)
            _fail(exc)
    return cfg


def _print_built(event: PaymentBuilt) -> None:
    d = event.descriptor
    click.echo(f"Requested:  {d.requested_amount} (entered {d.input_amount} x {d.multiplier})")
    click.echo(f"Encoded:    {d.encoded_amount}")
    click.echo(f"Recipient:  {d.recipient}")
    click.echo(f"Anchor:     block {d.anchor_block}")
    click.echo(f"URI:        {event.payment_uri}")
    click.echo(f"Explorer:   {event.explorer_url}")


def _print_snapshot(snap: SettlementSnapshot) -> None:
    line = (
        f"[{snap.status.value}] received {snap.received_total} / {snap.requested_amount} "
        f"(remaining {snap.remaining}, next block {snap.next_from_block})"
    )
    if snap.last_error:
        line += f" error: {snap.last_error}"
    click.echo(line)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """pagosettle - block-anchored stablecoin payment requests and settlement."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show configuration."""
    cfg = _load(ctx, require_settings=False)
    try:
        chain = cfg.chain.to_parameters()
    except SettlementError as exc:
        _fail(exc)
    click.echo(f"Chain:      {chain.display_name} (id {chain.chain_id})")
    click.echo(f"Token:      {chain.token_contract_id} ({chain.token_decimals} decimals)")
    click.echo(f"Explorer:   {chain.explorer_base_url}")
    click.echo(f"Recipient:  {cfg.recipient_address or '(not set)'}")
    click.echo(f"Multiplier: {cfg.multiplier}")
    click.echo(f"Indexer:    {cfg.indexer.proxy_url or cfg.indexer.api_url}")
    click.echo(f"API key:    {'***configured***' if cfg.api_key else '(not set)'}")
    click.echo(f"Poll:       every {cfg.poll_interval}s "
               f"(+{cfg.poll_jitter_min}-{cfg.poll_jitter_max}s jitter)")


@cli.command()
@click.pass_context
def block(ctx: click.Context) -> None:
    """Print the latest block height seen by the indexer."""
    cfg = _load(ctx, require_settings=False)

    async def _block() -> int:
        chain = cfg.chain.to_parameters()
        async with EtherscanIndexerClient.from_config(
            chain, cfg.indexer, api_key=cfg.api_key,
        ) as indexer:
            return await indexer.current_block_height()

    try:
        click.echo(asyncio.run(_block()))
    except SettlementError as exc:
        _fail(exc)


# ── Payments ───────────────────────────────────────────


@cli.command()
@click.argument("amount")
@click.pass_context
def request(ctx: click.Context, amount: str) -> None:
    """Build an anchored payment request for AMOUNT (e.g. 14.61 or 14,61)."""
    cfg = _load(ctx)

    async def _request() -> PaymentBuilt:
        chain = cfg.chain.to_parameters()
        async with EtherscanIndexerClient.from_config(
            chain, cfg.indexer, api_key=cfg.api_key,
        ) as indexer:
            d = await build_payment_request(
                amount, cfg.multiplier, chain, cfg.recipient_address, indexer,
            )
        return PaymentBuilt(descriptor=d, payment_uri=payment_uri(d), explorer_url=explorer_url(d))

    try:
        _print_built(asyncio.run(_request()))
    except SettlementError as exc:
        _fail(exc)


@cli.command()
@click.argument("amount")
@click.option("--timeout", type=float, default=None, help="Give up after this many seconds")
@click.pass_context
def watch(ctx: click.Context, amount: str, timeout: float | None) -> None:
    """Build a payment request for AMOUNT and monitor it until paid."""
    cfg = _load(ctx)
    try:
        final = asyncio.run(
            run_watch(cfg, amount, timeout, on_built=_print_built, on_snapshot=_print_snapshot)
        )
    except SettlementError as exc:
        _fail(exc)
        return

    if not final.is_terminal:
        click.echo("Payment not completed.", err=True)
        sys.exit(2)
    click.echo(f"Payment completed: {final.received_total} received.")
