"""Amount codec: floor rounding and exact minor-unit conversion."""

from __future__ import annotations

from decimal import Decimal

import pytest

from pagosettle.amounts import (
    floor_to_scale,
    from_minor_units,
    to_decimal,
    to_minor_units,
)
from pagosettle.errors import InvalidAmount, InvalidConfiguration


# ── floor_to_scale ────────────────────────────────────────────────


@pytest.mark.parametrize(
    "value, expected",
    [
        ("9.99999", "9.99"),
        ("10.00001", "10.00"),
        ("15.0483", "15.04"),
        ("0.009", "0.00"),
        ("7", "7.00"),
    ],
)
def test_floor_to_two_places(value, expected):
    assert floor_to_scale(Decimal(value), 2) == Decimal(expected)


def test_floor_never_rounds_up():
    """floor(a*m, 2) <= a*m and differs by less than one cent."""
    samples = [
        (Decimal("14.61"), Decimal("1.03")),
        (Decimal("0.01"), Decimal("1.5")),
        (Decimal("999999999.99"), Decimal("1.0375")),
        (Decimal("3.333"), Decimal("1")),
        (Decimal("123.456789"), Decimal("2.718281828")),
    ]
    for a, m in samples:
        exact = a * m
        floored = floor_to_scale(exact, 2)
        assert floored <= exact
        assert exact - floored < Decimal("0.01")


def test_floor_rejects_negative_and_non_finite():
    with pytest.raises(InvalidAmount):
        floor_to_scale(Decimal("-1.5"), 2)
    with pytest.raises(InvalidAmount):
        floor_to_scale(Decimal("NaN"), 2)
    with pytest.raises(InvalidAmount):
        floor_to_scale(Decimal("Infinity"), 2)


def test_floor_rejects_negative_places():
    with pytest.raises(InvalidConfiguration):
        floor_to_scale(Decimal("1.00"), -1)


# ── to_minor_units ────────────────────────────────────────────────


def test_scenario_a_encoding_is_exact():
    """15.04 with 18 decimals -> 15040000000000000000, no precision loss."""
    assert to_minor_units(Decimal("15.04"), 18) == 15_040_000_000_000_000_000


@pytest.mark.parametrize("decimals", [2, 6, 8, 18, 36])
def test_minor_units_round_trip(decimals):
    for text in ("0.01", "1.00", "15.04", "999999999.99", "1000000000"):
        value = Decimal(text)
        units = to_minor_units(value, decimals)
        assert isinstance(units, int)
        assert Decimal(units) / (Decimal(10) ** decimals) == value
        assert from_minor_units(units, decimals) == value


def test_minor_units_zero_decimals():
    assert to_minor_units(Decimal("42"), 0) == 42
    assert to_minor_units(Decimal("42.00"), 0) == 42


def test_minor_units_trailing_zeros_are_not_extra_precision():
    assert to_minor_units(Decimal("1.500000"), 2) == 150


def test_minor_units_rejects_excess_precision():
    with pytest.raises(InvalidAmount):
        to_minor_units(Decimal("1.005"), 2)


def test_minor_units_rejects_negative_decimals():
    with pytest.raises(InvalidConfiguration):
        to_minor_units(Decimal("1"), -2)


def test_minor_units_rejects_negative_amount():
    with pytest.raises(InvalidAmount):
        to_minor_units(Decimal("-0.01"), 18)


def test_from_minor_units_scenario_b():
    """Raw 9999 at 4 decimals is 0.9999, floored to 0.99."""
    value = from_minor_units(9999, 4)
    assert value == Decimal("0.9999")
    assert floor_to_scale(value, 2) == Decimal("0.99")


def test_from_minor_units_large_value_is_exact():
    raw = 123_456_789_012_345_678_901_234_567_890
    assert from_minor_units(raw, 18) == Decimal("123456789012.345678901234567890")


# ── to_decimal ────────────────────────────────────────────────────


def test_to_decimal_accepts_comma_separator():
    assert to_decimal("1,89") == Decimal("1.89")


def test_to_decimal_float_uses_shortest_repr():
    assert to_decimal(14.61) == Decimal("14.61")


@pytest.mark.parametrize("bad", ["abc", "", "1.2.3", True, None])
def test_to_decimal_rejects_garbage(bad):
    with pytest.raises(InvalidAmount):
        to_decimal(bad)
