"""Intraday (T0) profit calculation."""
from __future__ import annotations

from .models import FeeSchedule, T0Order
from .money import round_half_up


def compute_t0(order: T0Order, schedule: FeeSchedule) -> T0Order:
    """Fill the derived value, fee and profit fields of ``order`` in place."""

    if order.quantity <= 0:
        raise ValueError("Quantity must be greater than 0")
    if order.buy_price < 0 or order.sell_price < 0:
        raise ValueError("Prices must not be negative")

    order.buy_fee_rate = schedule.buy_fee_rate
    order.sell_fee_rate = schedule.sell_fee_rate
    order.tax_rate = schedule.tax_rate

    order.buy_value = order.quantity * order.buy_price
    order.sell_value = order.quantity * order.sell_price
    order.buy_fee = round_half_up(order.buy_value * schedule.buy_fee_rate)
    order.sell_fee = round_half_up(order.sell_value * schedule.sell_fee_rate)
    order.sell_tax = round_half_up(order.sell_value * schedule.tax_rate)
    order.profit_before_fees = order.sell_value - order.buy_value
    order.profit_after_fees = (
        order.profit_before_fees - order.buy_fee - order.sell_fee - order.sell_tax
    )
    return order


__all__ = ["compute_t0"]
