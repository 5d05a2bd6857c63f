"""Integer currency helpers.

Quantities and currency amounts are whole units; rates and intermediate
products are kept as :class:`~decimal.Decimal` so that fixtures such as
``50_000_000 * 0.0015`` land exactly on ``75_000``.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

_HALF = Decimal("0.5")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Decimal | int) -> int:
    """Round to the nearest integer, halves towards positive infinity."""

    return int((to_decimal(value) + _HALF).to_integral_value(rounding=ROUND_FLOOR))


def floor_int(value: Decimal | int) -> int:
    return int(to_decimal(value).to_integral_value(rounding=ROUND_FLOOR))


__all__ = ["to_decimal", "round_half_up", "floor_int"]
