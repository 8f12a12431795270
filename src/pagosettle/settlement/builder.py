"""Request builder - turns an entered amount into an anchored payment descriptor."""

from __future__ import annotations

import logging
from decimal import Decimal

from pagosettle.amounts import CENTS, floor_to_scale, multiply, to_decimal, to_minor_units
from pagosettle.errors import (
    AnchorUnavailable,
    InvalidAmount,
    InvalidConfiguration,
    UpstreamError,
)
from pagosettle.interfaces.indexer import IndexerClient
from pagosettle.models.chain import ChainParameters
from pagosettle.models.payment import PaymentDescriptor

log = logging.getLogger(__name__)


def requested_amount(
    input_amount: Decimal | int | str, multiplier: Decimal | int | str,
) -> Decimal:
    """Amount the payer is asked for: ``floor(input * multiplier, 2)``.

    Example: 14.61 * 1.03 = 15.0483 -> 15.04
    """
    amount = to_decimal(input_amount)
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"amount must be > 0, got {input_amount!r}")

    try:
        mult = to_decimal(multiplier)
    except InvalidAmount as exc:
        raise InvalidConfiguration(f"invalid multiplier: {multiplier!r}") from exc
    if not mult.is_finite() or mult < 1:
        raise InvalidConfiguration(f"multiplier must be >= 1.0, got {multiplier!r}")

    requested = floor_to_scale(multiply(amount, mult), CENTS)
    if requested <= 0:
        raise InvalidAmount(f"amount {input_amount!r} rounds down to zero")
    return requested


async def build_payment_request(
    input_amount: Decimal | int | str,
    multiplier: Decimal | int | str,
    chain: ChainParameters,
    recipient: str,
    indexer: IndexerClient,
) -> PaymentDescriptor:
    """Validate, encode, and anchor a payment request.

    The anchor block is the only thing that tells the monitor where history
    starts, so a descriptor is never issued without one.
    """
    requested = requested_amount(input_amount, multiplier)
    if not recipient or not recipient.strip():
        raise InvalidConfiguration("recipient address is not configured")
    encoded = to_minor_units(requested, chain.token_decimals)

    try:
        anchor = await indexer.current_block_height()
    except UpstreamError as exc:
        log.error("Could not anchor payment request: %s", exc)
        raise AnchorUnavailable(f"could not fetch current block: {exc}") from exc
    if anchor < 0:
        raise AnchorUnavailable(f"indexer returned invalid block height {anchor}")

    descriptor = PaymentDescriptor(
        requested_amount=requested,
        encoded_amount=encoded,
        recipient=recipient.strip(),
        anchor_block=anchor,
        chain=chain,
        input_amount=to_decimal(input_amount),
        multiplier=to_decimal(multiplier),
    )
    log.info(
        "Built payment request: %s on %s to %s (anchor block %d)",
        requested, chain.display_name, descriptor.recipient, anchor,
    )
    return descriptor
