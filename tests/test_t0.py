from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from stock_ledger import FeeSchedule, T0Order, compute_t0
from stock_ledger.money import floor_int, round_half_up

SCHEDULE = FeeSchedule(Decimal("0.0015"), Decimal("0.0015"), Decimal("0.001"))


def build_order(**overrides) -> T0Order:
    fields = dict(
        stock_code="HPG",
        company_id=1,
        owner_id="user-1",
        trade_date=date(2024, 5, 6),
        quantity=1000,
        buy_price=25_000,
        sell_price=25_500,
    )
    fields.update(overrides)
    return T0Order(**fields)


def test_round_trip_trade_profit_matches_manual_figures():
    order = compute_t0(build_order(), SCHEDULE)

    assert order.buy_value == 25_000_000
    assert order.sell_value == 25_500_000
    assert order.profit_before_fees == 500_000
    assert order.buy_fee == 37_500
    assert order.sell_fee == 38_250
    assert order.sell_tax == 25_500
    assert order.profit_after_fees == 398_750


def test_rates_are_copied_onto_the_order():
    order = compute_t0(build_order(), SCHEDULE)

    assert order.buy_fee_rate == Decimal("0.0015")
    assert order.sell_fee_rate == Decimal("0.0015")
    assert order.tax_rate == Decimal("0.001")


def test_losing_trade_keeps_fees_on_top_of_loss():
    order = compute_t0(build_order(quantity=100, buy_price=10_000, sell_price=9_000), SCHEDULE)

    assert order.profit_before_fees == -100_000
    assert order.buy_fee == 1_500
    assert order.sell_fee == 1_350
    assert order.sell_tax == 900
    assert order.profit_after_fees == -103_750


def test_fee_rounding_is_half_up():
    # 333 * 10 * 0.0015 = 4.995 -> 5, 333 * 10 * 0.001 = 3.33 -> 3
    order = compute_t0(build_order(quantity=333, buy_price=10, sell_price=10), SCHEDULE)

    assert order.buy_fee == 5
    assert order.sell_tax == 3


def test_money_helpers_round_and_floor_under_the_default_context():
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("-2.5")) == -2
    assert floor_int(Decimal("-0.1")) == -1
    # 9_000_000 shares at 1_234_567 with a 0.15% fee stays exact
    assert round_half_up(Decimal(9_000_000 * 1_234_567) * Decimal("0.0015")) == 16_666_654_500


@pytest.mark.parametrize(
    "overrides",
    [{"quantity": 0}, {"buy_price": -1}, {"sell_price": -5}],
)
def test_invalid_inputs_are_rejected(overrides):
    with pytest.raises(ValueError):
        compute_t0(build_order(**overrides), SCHEDULE)
