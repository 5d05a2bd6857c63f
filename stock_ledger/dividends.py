"""Forward and inverse dividend transforms over long-term orders.

A STOCK dividend of ``v`` percent multiplies share counts by ``1 + v/100``
and divides prices by the same ratio for every order dated before the
dividend date. The inverse is not exact: prices go through ``floor`` in both
directions, and quantities are re-allocated by largest remainder, so a
forward-then-revert round trip restores each order to within one share and
the total to within one share of the original.

CASH dividends leave orders untouched when applied. Reverting a CASH
dividend that was marked as used scales prices back up by
``1 / (1 - v/100)``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from .allocation import allocate_largest_remainder
from .errors import DividendAlreadyApplied
from .models import Dividend, DividendType, LongTermOrder, OrderType, TransformResult
from .money import floor_int, round_half_up, to_decimal

_HUNDRED = Decimal("100")


def split_ratio(dividend: Dividend) -> Decimal:
    return Decimal("1") + to_decimal(dividend.value) / _HUNDRED


def affected_orders(dividend: Dividend, orders: Iterable[LongTermOrder]) -> list[LongTermOrder]:
    """Orders of the dividend's stock dated strictly before the dividend date."""

    selected = [
        order
        for order in orders
        if order.stock_code == dividend.stock_code and order.trade_date < dividend.dividend_date
    ]
    selected.sort(key=LongTermOrder.sort_key)
    return selected


def apply_dividend(dividend: Dividend, orders: Iterable[LongTermOrder]) -> TransformResult:
    """Apply ``dividend`` to ``orders`` in place and mark it used."""

    if dividend.is_used:
        raise DividendAlreadyApplied(dividend.id)
    if dividend.type == DividendType.CASH:
        return TransformResult(dividend=dividend, adjusted=0)

    selected = affected_orders(dividend, orders)
    ratio = split_ratio(dividend)
    total = sum(order.quantity for order in selected)
    target = round_half_up(total * ratio)

    if selected:
        quantities = allocate_largest_remainder([order.quantity for order in selected], target)
        for order, quantity in zip(selected, quantities):
            order.quantity = quantity
            order.price = floor_int(Decimal(order.price) / ratio)
            if order.type == OrderType.SELL and order.cost_basis > 0:
                order.cost_basis = floor_int(order.cost_basis * ratio)

    dividend.is_used = True
    return TransformResult(
        dividend=dividend,
        adjusted=len(selected),
        orders=selected,
        original_total=total,
        target_total=target,
    )


def revert_dividend(dividend: Dividend, orders: Iterable[LongTermOrder]) -> TransformResult:
    """Undo a previously applied ``dividend`` on ``orders`` in place."""

    if not dividend.is_used:
        return TransformResult(dividend=dividend, adjusted=0)

    selected = affected_orders(dividend, orders)
    total = sum(order.quantity for order in selected)

    if dividend.type == DividendType.CASH:
        value = to_decimal(dividend.value)
        if value >= _HUNDRED:
            raise ValueError("Cash dividend value must be below 100 to revert")
        for order in selected:
            # price / (1 - v/100), kept as one division so exact quotients stay exact
            order.price = floor_int(Decimal(order.price) * _HUNDRED / (_HUNDRED - value))
        dividend.is_used = False
        dividend.applied_all_owners = False
        return TransformResult(
            dividend=dividend,
            adjusted=len(selected),
            orders=selected,
            original_total=total,
            target_total=total,
        )

    ratio = split_ratio(dividend)
    target = round_half_up(Decimal(total) / ratio)
    if selected:
        quantities = allocate_largest_remainder([order.quantity for order in selected], target)
        for order, quantity in zip(selected, quantities):
            order.quantity = quantity
            order.price = floor_int(order.price * ratio)
            if order.type == OrderType.SELL:
                order.cost_basis = floor_int(Decimal(order.cost_basis) / ratio)

    dividend.is_used = False
    dividend.applied_all_owners = False
    return TransformResult(
        dividend=dividend,
        adjusted=len(selected),
        orders=selected,
        original_total=total,
        target_total=target,
    )


__all__ = ["split_ratio", "affected_orders", "apply_dividend", "revert_dividend"]
