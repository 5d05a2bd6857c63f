"""Average-cost ledger golden figures and ordering rules."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from stock_ledger import LedgerKey, LongTermOrder, OrderType, PositionLedger
from stock_ledger.ledger import average_cost, running_pool

KEY = LedgerKey("HPG", 1, "user-1")
BUY_FEE = Decimal("0.0015")
SELL_FEE = Decimal("0.0015")
TAX = Decimal("0.001")


def buy(quantity: int, price: int, trade_date: date, **extra) -> LongTermOrder:
    return LongTermOrder(
        stock_code=KEY.stock_code,
        company_id=KEY.company_id,
        owner_id=KEY.owner_id,
        trade_date=trade_date,
        type=OrderType.BUY,
        quantity=quantity,
        price=price,
        fee_rate=BUY_FEE,
        tax_rate=TAX,
        **extra,
    )


def sell(quantity: int, price: int, trade_date: date, **extra) -> LongTermOrder:
    return LongTermOrder(
        stock_code=KEY.stock_code,
        company_id=KEY.company_id,
        owner_id=KEY.owner_id,
        trade_date=trade_date,
        type=OrderType.SELL,
        quantity=quantity,
        price=price,
        fee_rate=SELL_FEE,
        tax_rate=TAX,
        **extra,
    )


def test_buy_cost_basis_includes_fee():
    ledger = PositionLedger(KEY)
    order = ledger.record(buy(1000, 50_000, date(2024, 1, 2)))

    assert order.fee == 75_000
    assert order.tax == 0
    assert order.cost_basis == 50_075_000
    assert order.profit == 0


def test_sell_draws_average_cost_from_prior_buys():
    ledger = PositionLedger(KEY)
    ledger.record(buy(1000, 50_000, date(2024, 1, 2)))
    order = ledger.record(sell(500, 60_000, date(2024, 2, 1)))

    assert order.fee == 45_000
    assert order.tax == 30_000
    assert order.cost_basis == 25_037_500
    assert order.profit == 4_887_500


def test_sell_without_history_falls_back_to_net_proceeds(caplog):
    ledger = PositionLedger(KEY)
    with caplog.at_level("WARNING"):
        order = ledger.record(sell(100, 10_000, date(2024, 1, 2)))

    assert order.cost_basis == 0
    assert order.profit == 1_000_000 - 1_500 - 1_000
    assert "SELL of 100 HPG on 2024-01-02 has no BUY history" in caplog.text


def test_prior_sell_removes_the_cost_it_was_charged():
    ledger = PositionLedger(KEY)
    ledger.record(buy(1000, 50_000, date(2024, 1, 2)))
    ledger.record(sell(500, 60_000, date(2024, 2, 1)))
    ledger.record(buy(500, 40_000, date(2024, 3, 1)))

    quantity, cost_basis = running_pool(ledger.orders)
    assert quantity == 1000
    # 50_075_000 - 25_037_500 + 20_030_000
    assert cost_basis == 45_067_500

    order = ledger.record(sell(200, 50_000, date(2024, 4, 1)))
    assert order.cost_basis == 200 * 45_068


def test_same_day_orders_follow_creation_time():
    day = date(2024, 1, 2)
    earlier_sell = sell(100, 10_000, day, id=1, created_at=datetime(2024, 1, 2, 9, 0))
    later_buy = buy(1000, 50_000, day, id=2, created_at=datetime(2024, 1, 2, 10, 0))
    later_sell = sell(100, 60_000, day, id=3, created_at=datetime(2024, 1, 2, 11, 0))
    ledger = PositionLedger(KEY, [later_sell, later_buy, earlier_sell])

    assert [order.id for order in ledger.orders] == [1, 2, 3]

    ledger.replay()
    first, _, last = ledger.orders
    assert first.cost_basis == 0
    # the uncovered sell still leaves the pool: 50_075_000 / 900 -> 55_639
    assert last.cost_basis == 100 * 55_639


def test_editing_a_sell_does_not_count_itself_in_its_pool():
    ledger = PositionLedger(KEY)
    ledger.record(buy(1000, 50_000, date(2024, 1, 2), id=1, created_at=datetime(2024, 1, 2)))
    existing = sell(500, 60_000, date(2024, 2, 1), id=2, created_at=datetime(2024, 2, 1))
    ledger.record(existing)

    existing.quantity = 400
    ledger.record(existing, rescan=True)

    assert existing.cost_basis == 400 * 50_075
    assert len(ledger) == 2


def test_without_rescan_only_charges_change():
    ledger = PositionLedger(KEY)
    ledger.record(buy(1000, 50_000, date(2024, 1, 2), id=1, created_at=datetime(2024, 1, 2)))
    existing = sell(500, 60_000, date(2024, 2, 1), id=2, created_at=datetime(2024, 2, 1))
    ledger.record(existing)

    existing.price = 70_000
    ledger.record(existing, rescan=False)

    assert existing.fee == 52_500
    assert existing.tax == 35_000
    assert existing.cost_basis == 25_037_500
    assert existing.profit == 4_887_500


def test_replay_picks_up_backdated_buy():
    ledger = PositionLedger(KEY)
    ledger.record(buy(1000, 50_000, date(2024, 1, 2)))
    sold = ledger.record(sell(500, 60_000, date(2024, 3, 1)))
    ledger.record(buy(1000, 40_000, date(2024, 1, 1)))

    assert sold.cost_basis == 25_037_500

    ledger.replay()
    # (50_075_000 + 40_060_000) / 2000 = 45_067.5 -> 45_068
    assert sold.cost_basis == 500 * 45_068
    assert sold.profit == 29_925_000 - 22_534_000

    summary = ledger.summary()
    assert summary.quantity == 1500
    assert summary.cost_basis == 90_135_000 - 22_534_000
    assert summary.average_cost == 45_067
    assert summary.realized_profit == 7_391_000
    assert summary.order_count == 3


def test_average_cost_is_undefined_for_an_empty_pool():
    assert average_cost(0, 0) is None
    assert average_cost(-10, 500) is None
    assert average_cost(3, 10) == 3
    assert average_cost(2, 3) == 2
