"""Forward and inverse dividend transforms."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from stock_ledger import Dividend, DividendType, LongTermOrder, OrderType, apply_dividend, revert_dividend, split_ratio
from stock_ledger.errors import DividendAlreadyApplied

SPLIT_DATE = date(2024, 6, 1)


def order(quantity: int, price: int, trade_date: date, order_type: OrderType = OrderType.BUY, **extra) -> LongTermOrder:
    return LongTermOrder(
        stock_code="HPG",
        company_id=1,
        owner_id="user-1",
        trade_date=trade_date,
        type=order_type,
        quantity=quantity,
        price=price,
        **extra,
    )


def stock_dividend(value: str = "10", **extra) -> Dividend:
    return Dividend(
        stock_code="HPG",
        owner_id="user-1",
        dividend_date=SPLIT_DATE,
        type=DividendType.STOCK,
        value=Decimal(value),
        **extra,
    )


def build_orders() -> list[LongTermOrder]:
    return [
        order(300, 50_000, date(2024, 1, 2), id=1),
        order(400, 30_000, date(2024, 2, 1), id=2),
        order(300, 45_000, date(2024, 3, 1), id=3),
    ]


def test_split_ratio_from_percentage():
    assert split_ratio(stock_dividend("10")) == Decimal("1.1")
    assert split_ratio(stock_dividend("25")) == Decimal("1.25")


def test_stock_dividend_scales_quantities_and_floors_prices():
    orders = build_orders()
    dividend = stock_dividend()

    result = apply_dividend(dividend, orders)

    assert result.adjusted == 3
    assert result.original_total == 1000
    assert result.target_total == 1100
    assert [o.quantity for o in orders] == [330, 440, 330]
    assert [o.price for o in orders] == [45_454, 27_272, 40_909]
    assert dividend.is_used is True


def test_only_orders_before_the_dividend_date_are_touched():
    orders = build_orders() + [order(100, 20_000, SPLIT_DATE, id=4), order(50, 20_000, date(2024, 7, 1), id=5)]

    result = apply_dividend(stock_dividend(), orders)

    assert result.adjusted == 3
    assert orders[3].quantity == 100
    assert orders[4].quantity == 50
    assert orders[3].price == 20_000


def test_other_stocks_are_ignored():
    foreign = order(100, 20_000, date(2024, 1, 2), id=9)
    foreign.stock_code = "VNM"

    result = apply_dividend(stock_dividend(), [foreign])

    assert result.adjusted == 0
    assert foreign.quantity == 100


def test_sum_invariant_holds_with_rounding_drift():
    orders = [order(3, 10_000, date(2024, 1, d), id=d) for d in (2, 3, 4)]

    result = apply_dividend(stock_dividend("50"), orders)

    assert sum(o.quantity for o in orders) == 14
    assert result.target_total == 14


def test_sell_cost_basis_scales_up_with_ratio():
    sold = order(100, 60_000, date(2024, 4, 1), OrderType.SELL, id=4, cost_basis=5_007_500)
    orders = build_orders() + [sold]

    apply_dividend(stock_dividend(), orders)

    assert sold.cost_basis == 5_508_250


def test_applied_dividend_cannot_be_applied_again():
    orders = build_orders()
    dividend = stock_dividend()
    apply_dividend(dividend, orders)

    with pytest.raises(DividendAlreadyApplied):
        apply_dividend(dividend, orders)
    assert [o.quantity for o in orders] == [330, 440, 330]


def test_empty_set_is_a_zero_count_success():
    dividend = stock_dividend()

    result = apply_dividend(dividend, [])

    assert result.adjusted == 0
    assert dividend.is_used is True


def test_cash_dividend_forward_is_a_no_op():
    orders = build_orders()
    dividend = stock_dividend()
    dividend.type = DividendType.CASH

    result = apply_dividend(dividend, orders)

    assert result.adjusted == 0
    assert dividend.is_used is False
    assert [o.price for o in orders] == [50_000, 30_000, 45_000]


def test_round_trip_restores_quantities_within_tolerance():
    orders = build_orders()
    original = [(o.quantity, o.price) for o in orders]
    dividend = stock_dividend()

    apply_dividend(dividend, orders)
    result = revert_dividend(dividend, orders)

    assert result.adjusted == 3
    assert dividend.is_used is False
    assert [o.quantity for o in orders] == [q for q, _ in original]
    # floor on the way down and floor on the way up lose at most a unit
    for o, (_, price) in zip(orders, original):
        assert price - 1 <= o.price <= price
    assert [o.price for o in orders] == [49_999, 29_999, 44_999]


def test_round_trip_total_within_one_share():
    orders = [order(q, 10_000, date(2024, 1, i + 2), id=i + 1) for i, q in enumerate((7, 11, 13, 5))]
    before = sum(o.quantity for o in orders)
    dividend = stock_dividend("15")

    apply_dividend(dividend, orders)
    revert_dividend(dividend, orders)

    assert abs(sum(o.quantity for o in orders) - before) <= 1
    assert all(o.quantity >= 0 for o in orders)


def test_revert_of_unused_dividend_changes_nothing():
    orders = build_orders()

    result = revert_dividend(stock_dividend(), orders)

    assert result.adjusted == 0
    assert [o.quantity for o in orders] == [300, 400, 300]


def test_cash_revert_scales_prices_up():
    orders = build_orders()
    dividend = stock_dividend("10", is_used=True)
    dividend.type = DividendType.CASH

    result = revert_dividend(dividend, orders)

    assert result.adjusted == 3
    assert [o.quantity for o in orders] == [300, 400, 300]
    # 50_000 / 0.9 = 55_555.5..., 30_000 / 0.9 = 33_333.3..., 45_000 / 0.9 = 50_000
    assert [o.price for o in orders] == [55_555, 33_333, 50_000]
    assert dividend.is_used is False


def test_cash_revert_rejects_full_payout():
    dividend = stock_dividend("100", is_used=True)
    dividend.type = DividendType.CASH

    with pytest.raises(ValueError):
        revert_dividend(dividend, build_orders())
