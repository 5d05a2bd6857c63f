"""Average-cost ledger for long-term orders.

Each (stock, broker, owner) key carries a single weighted-average cost pool
that advances through time. The pool is never stored on its own: it is
rebuilt by replaying the key's orders in trade-date, creation-time,
identifier order, and every SELL takes its cost basis from the pool formed
by the orders that precede it.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Sequence

from .errors import InsufficientData
from .models import LedgerKey, LongTermOrder, OrderType, PositionSummary
from .money import round_half_up

logger = logging.getLogger(__name__)


def derive_charges(order: LongTermOrder) -> None:
    """Set fee and tax from the rates captured on the order."""

    value = order.value
    order.fee = round_half_up(value * order.fee_rate)
    order.tax = 0 if order.type == OrderType.BUY else round_half_up(value * order.tax_rate)


def derive_buy(order: LongTermOrder) -> None:
    derive_charges(order)
    order.cost_basis = order.value + order.fee
    order.profit = 0


def running_pool(history: Iterable[LongTermOrder]) -> tuple[int, int]:
    """Return ``(quantity, cost_basis)`` left in the pool after ``history``.

    A SELL removes exactly the cost it was charged.
    """

    quantity = 0
    cost_basis = 0
    for order in history:
        if order.type == OrderType.BUY:
            quantity += order.quantity
            cost_basis += order.cost_basis
        else:
            quantity -= order.quantity
            cost_basis -= order.cost_basis
    return quantity, cost_basis


def average_cost(quantity: int, cost_basis: int) -> int | None:
    if quantity <= 0:
        return None
    return round_half_up(Decimal(cost_basis) / quantity)


def derive_sell(order: LongTermOrder, history: Sequence[LongTermOrder]) -> bool:
    """Derive fee, tax, cost basis and realized profit for a SELL.

    Returns ``False`` when the pool is empty; the order then carries no cost
    basis and its profit is the proceeds net of fee and tax.
    """

    derive_charges(order)
    quantity, cost_basis = running_pool(history)
    per_share = average_cost(quantity, cost_basis)
    if per_share is None:
        order.cost_basis = 0
        order.profit = order.value - order.fee - order.tax
        return False

    value = Decimal(order.value)
    net_proceeds = value - value * (order.fee_rate + order.tax_rate)
    order.cost_basis = per_share * order.quantity
    order.profit = round_half_up(net_proceeds - order.quantity * per_share)
    return True


def _validate(order: LongTermOrder) -> None:
    if order.quantity <= 0:
        raise ValueError("Quantity must be greater than 0")
    if order.price < 0:
        raise ValueError("Price must not be negative")


def _same_record(left: LongTermOrder, right: LongTermOrder) -> bool:
    if left is right:
        return True
    return left.id is not None and left.id == right.id


class PositionLedger:
    """Ordered orders of one ledger key.

    :meth:`record` and :meth:`replay` are the only ways to change derived
    fields. There is no locking: one request at a time is expected to hold a
    given key, and concurrent writers to the same key can leave the persisted
    cost bases out of chronological order.
    """

    def __init__(self, key: LedgerKey, orders: Iterable[LongTermOrder] = ()):
        self.key = key
        self._orders: list[LongTermOrder] = []
        for order in orders:
            self._check_key(order)
            self._orders.append(order)
        self._orders.sort(key=LongTermOrder.sort_key)

    @property
    def orders(self) -> list[LongTermOrder]:
        return list(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

    def _check_key(self, order: LongTermOrder) -> None:
        if order.key != self.key:
            raise ValueError(f"Order for {order.key} does not belong to ledger {self.key}")

    def preceding(self, order: LongTermOrder) -> list[LongTermOrder]:
        """Orders strictly before ``order`` in ledger order, excluding itself.

        The pool follows the full (trade date, created at, id) ordering
        rather than ``trade_date <= order.trade_date``: an edited SELL does
        not see same-day orders created after it, so its cost basis is the
        one it would have had on insert.
        """

        position = order.sort_key()
        return [
            other
            for other in self._orders
            if not _same_record(other, order) and other.sort_key() < position
        ]

    def record(self, order: LongTermOrder, *, rescan: bool = True) -> LongTermOrder:
        """Derive ``order``'s computed fields and place it in the ledger.

        ``rescan`` controls whether a SELL's cost basis and profit are taken
        again from the pool; unsaved orders are always rescanned. Other
        orders of the key are left untouched.
        """

        _validate(order)
        self._check_key(order)
        if order.id is None:
            rescan = True

        if order.type == OrderType.BUY:
            derive_buy(order)
        elif rescan:
            if not derive_sell(order, self.preceding(order)):
                logger.warning("%s", InsufficientData(order.stock_code, order.quantity, order.trade_date))
        else:
            derive_charges(order)

        self._orders = [other for other in self._orders if not _same_record(other, order)]
        self._orders.append(order)
        self._orders.sort(key=LongTermOrder.sort_key)
        return order

    def remove(self, order: LongTermOrder) -> None:
        self._orders = [other for other in self._orders if not _same_record(other, order)]

    def replay(self) -> list[LongTermOrder]:
        """Re-derive every order chronologically and return them in order."""

        for index, order in enumerate(self._orders):
            if order.type == OrderType.BUY:
                derive_buy(order)
            else:
                derive_sell(order, self._orders[:index])
        return self.orders

    def summary(self) -> PositionSummary:
        quantity, cost_basis = running_pool(self._orders)
        per_share = average_cost(quantity, cost_basis)
        realized = sum(order.profit for order in self._orders if order.type == OrderType.SELL)
        return PositionSummary(
            key=self.key,
            quantity=quantity,
            cost_basis=cost_basis,
            average_cost=per_share or 0,
            realized_profit=realized,
            order_count=len(self._orders),
        )


def group_by_key(orders: Iterable[LongTermOrder]) -> dict[LedgerKey, list[LongTermOrder]]:
    grouped: dict[LedgerKey, list[LongTermOrder]] = {}
    for order in orders:
        grouped.setdefault(order.key, []).append(order)
    return grouped


__all__ = [
    "PositionLedger",
    "average_cost",
    "derive_buy",
    "derive_charges",
    "derive_sell",
    "group_by_key",
    "running_pool",
]
