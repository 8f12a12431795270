"""Amount codec: floor rounding and exact minor-unit conversion.

Every conversion here works on ``decimal.Decimal`` digit tuples and Python
integers. Nothing is ever routed through ``float``.
"""

from __future__ import annotations

from decimal import (
    MAX_EMAX,
    MAX_PREC,
    MIN_EMIN,
    ROUND_DOWN,
    Context,
    Decimal,
    InvalidOperation,
)

from pagosettle.errors import InvalidAmount, InvalidConfiguration

# Unbounded precision: quantize/scaleb/multiply never round implicitly.
_EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)

CENTS = 2


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Parse user input into a Decimal.

    Strings may use either ``.`` or ``,`` as the decimal separator
    ("1,89" -> 1.89). Floats go through their shortest repr so that
    ``14.61`` stays ``14.61`` instead of its binary expansion.
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"not an amount: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, str):
        text = value.strip().replace(",", ".")
        try:
            return Decimal(text)
        except InvalidOperation:
            raise InvalidAmount(f"not an amount: {value!r}") from None
    raise InvalidAmount(f"unsupported amount type: {type(value).__name__}")


def _check_amount(value: Decimal) -> None:
    if not value.is_finite():
        raise InvalidAmount(f"amount must be finite, got {value}")
    if value < 0:
        raise InvalidAmount(f"amount must not be negative, got {value}")


def floor_to_scale(value: Decimal | int | str, places: int) -> Decimal:
    """Truncate toward zero at ``places`` fractional digits.

    >>> floor_to_scale(Decimal("15.0483"), 2)
    Decimal('15.04')
    >>> floor_to_scale(Decimal("9.99999"), 2)
    Decimal('9.99')
    """
    if places < 0:
        raise InvalidConfiguration(f"places must be >= 0, got {places}")
    dec = to_decimal(value)
    _check_amount(dec)
    return dec.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN, context=_EXACT)


def to_minor_units(value: Decimal | int | str, decimals: int) -> int:
    """Convert ``value`` into an exact integer count of the token's smallest unit.

    ``value`` must not carry more significant fractional digits than
    ``decimals``; trailing zeros are fine. Floor with :func:`floor_to_scale`
    first when the input may be more precise than that.
    """
    if decimals < 0:
        raise InvalidConfiguration(f"decimals must be >= 0, got {decimals}")
    dec = to_decimal(value)
    _check_amount(dec)

    _, digits, exponent = dec.as_tuple()
    coefficient = int("".join(map(str, digits))) if digits else 0
    shift = exponent + decimals
    if shift >= 0:
        return coefficient * 10**shift

    divisor = 10**-shift
    units, remainder = divmod(coefficient, divisor)
    if remainder:
        raise InvalidAmount(
            f"{dec} has more than {decimals} fractional digits; floor it first"
        )
    return units


def from_minor_units(units: int, decimals: int) -> Decimal:
    """Exact inverse of :func:`to_minor_units`."""
    if decimals < 0:
        raise InvalidConfiguration(f"decimals must be >= 0, got {decimals}")
    if units < 0:
        raise InvalidAmount(f"raw value must not be negative, got {units}")
    return Decimal(units).scaleb(-decimals, context=_EXACT)


def multiply(a: Decimal, b: Decimal) -> Decimal:
    """Exact product of two decimals (no context rounding)."""
    return _EXACT.multiply(a, b)
