"""Domain models used by the ledger computation engine."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


class OrderType(str, enum.Enum):
    BUY = "BUY"
    SELL = "SELL"


class DividendType(str, enum.Enum):
    STOCK = "STOCK"
    CASH = "CASH"


@dataclass(frozen=True)
class FeeSchedule:
    """Per-broker fee and tax rates, expressed as fractions (0.0015 = 0.15%)."""

    buy_fee_rate: Decimal
    sell_fee_rate: Decimal
    tax_rate: Decimal

    def fee_rate_for(self, order_type: OrderType) -> Decimal:
        return self.buy_fee_rate if order_type == OrderType.BUY else self.sell_fee_rate


@dataclass(frozen=True)
class LedgerKey:
    """Identifies one average-cost position: a stock held at a broker by an owner."""

    stock_code: str
    company_id: int
    owner_id: str


@dataclass
class LongTermOrder:
    """A directional trade contributing to or drawing down a position."""

    stock_code: str
    company_id: int
    owner_id: str
    trade_date: date
    type: OrderType
    quantity: int
    price: int
    fee_rate: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    fee: int = 0
    tax: int = 0
    cost_basis: int = 0
    profit: int = 0
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> LedgerKey:
        return LedgerKey(self.stock_code, self.company_id, self.owner_id)

    @property
    def value(self) -> int:
        return self.quantity * self.price

    def sort_key(self) -> tuple:
        """Trade date, then creation time, then identifier.

        Records not yet persisted sort after every persisted record of the
        same day.
        """

        created = self.created_at or datetime.max
        return (self.trade_date, created, self.id is None, self.id or 0)


@dataclass
class T0Order:
    """A matched same-day buy and sell of the same quantity."""

    stock_code: str
    company_id: int
    owner_id: str
    trade_date: date
    quantity: int
    buy_price: int
    sell_price: int
    buy_fee_rate: Decimal = Decimal("0")
    sell_fee_rate: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    buy_value: int = 0
    sell_value: int = 0
    buy_fee: int = 0
    sell_fee: int = 0
    sell_tax: int = 0
    profit_before_fees: int = 0
    profit_after_fees: int = 0
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Dividend:
    """A corporate action recorded against a stock for one owner."""

    stock_code: str
    owner_id: str
    dividend_date: date
    type: DividendType
    value: Decimal
    is_used: bool = False
    applied_all_owners: bool = False
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PositionSummary:
    """Replayed state of one ledger key after its last record."""

    key: LedgerKey
    quantity: int
    cost_basis: int
    average_cost: int
    realized_profit: int
    order_count: int


@dataclass
class TransformResult:
    """Outcome of applying or reverting a dividend against long-term orders."""

    dividend: Dividend
    adjusted: int
    orders: list[LongTermOrder] = field(default_factory=list)
    original_total: int = 0
    target_total: int = 0


@dataclass
class StockStats:
    stock_code: str
    t0_order_count: int = 0
    t0_profit_before_fees: int = 0
    t0_profit_after_fees: int = 0
    buy_orders: int = 0
    sell_orders: int = 0
    buy_quantity: int = 0
    sell_quantity: int = 0
    realized_profit: int = 0


@dataclass
class LedgerStats:
    """Per-owner totals across T0 orders, long-term orders and dividends."""

    long_term_order_count: int = 0
    t0_order_count: int = 0
    dividend_count: int = 0
    t0_profit_before_fees: int = 0
    t0_profit_after_fees: int = 0
    t0_buy_value: int = 0
    t0_sell_value: int = 0
    long_term_realized_profit: int = 0
    by_stock: list[StockStats] = field(default_factory=list)


__all__ = [
    "StockStats",
    "LedgerStats",
    "OrderType",
    "DividendType",
    "FeeSchedule",
    "LedgerKey",
    "LongTermOrder",
    "T0Order",
    "Dividend",
    "PositionSummary",
    "TransformResult",
]
