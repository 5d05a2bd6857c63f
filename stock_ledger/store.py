"""Persistence seam for trade and dividend records."""
from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Dict, List, Optional, Protocol

from .models import Dividend, DividendType, LongTermOrder, OrderType, T0Order


class RecordStore(Protocol):
    """Async storage for long-term orders, T0 orders and dividends.

    ``find_*`` methods return long-term orders in ledger order (trade date,
    creation time, identifier). An ``owner_id`` of ``None`` spans all owners.
    """

    async def get_order(self, order_id: int) -> Optional[LongTermOrder]:
        ...

    async def find_orders(
        self,
        *,
        stock_code: str | None = None,
        owner_id: str | None = None,
        company_id: int | None = None,
        order_type: OrderType | None = None,
        before: date | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> List[LongTermOrder]:
        ...

    async def save_order(self, order: LongTermOrder) -> LongTermOrder:
        ...

    async def delete_order(self, order_id: int) -> None:
        ...

    async def get_t0_order(self, order_id: int) -> Optional[T0Order]:
        ...

    async def find_t0_orders(
        self,
        *,
        owner_id: str | None = None,
        stock_code: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> List[T0Order]:
        ...

    async def save_t0_order(self, order: T0Order) -> T0Order:
        ...

    async def delete_t0_order(self, order_id: int) -> None:
        ...

    async def get_dividend(self, dividend_id: int) -> Optional[Dividend]:
        ...

    async def find_dividends(
        self,
        *,
        owner_id: str | None = None,
        stock_code: str | None = None,
        dividend_type: DividendType | None = None,
    ) -> List[Dividend]:
        ...

    async def save_dividend(self, dividend: Dividend) -> Dividend:
        ...

    async def delete_dividend(self, dividend_id: int) -> None:
        ...


def _in_range(value: date, start: date | None, end: date | None) -> bool:
    if start and value < start:
        return False
    if end and value > end:
        return False
    return True


class InMemoryRecordStore:
    """Dictionary-backed store for tests and scripting.

    Records are copied on the way in and out, so callers only see changes
    they have saved.
    """

    def __init__(self) -> None:
        self._orders: Dict[int, LongTermOrder] = {}
        self._t0_orders: Dict[int, T0Order] = {}
        self._dividends: Dict[int, Dividend] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    async def get_order(self, order_id: int) -> Optional[LongTermOrder]:
        order = self._orders.get(order_id)
        return replace(order) if order else None

    async def find_orders(
        self,
        *,
        stock_code: str | None = None,
        owner_id: str | None = None,
        company_id: int | None = None,
        order_type: OrderType | None = None,
        before: date | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> List[LongTermOrder]:
        matches = []
        for order in self._orders.values():
            if stock_code and order.stock_code != stock_code:
                continue
            if owner_id is not None and order.owner_id != owner_id:
                continue
            if company_id is not None and order.company_id != company_id:
                continue
            if order_type is not None and order.type != order_type:
                continue
            if before and order.trade_date >= before:
                continue
            if not _in_range(order.trade_date, start, end):
                continue
            matches.append(replace(order))
        matches.sort(key=LongTermOrder.sort_key)
        return matches

    async def save_order(self, order: LongTermOrder) -> LongTermOrder:
        now = datetime.utcnow()
        if order.id is None:
            order.id = self._allocate_id()
            order.created_at = now
        order.updated_at = now
        self._orders[order.id] = replace(order)
        return order

    async def delete_order(self, order_id: int) -> None:
        self._orders.pop(order_id, None)

    async def get_t0_order(self, order_id: int) -> Optional[T0Order]:
        order = self._t0_orders.get(order_id)
        return replace(order) if order else None

    async def find_t0_orders(
        self,
        *,
        owner_id: str | None = None,
        stock_code: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> List[T0Order]:
        matches = [
            replace(order)
            for order in self._t0_orders.values()
            if (owner_id is None or order.owner_id == owner_id)
            and (not stock_code or order.stock_code == stock_code)
            and _in_range(order.trade_date, start, end)
        ]
        matches.sort(key=lambda order: (order.trade_date, order.id or 0))
        return matches

    async def save_t0_order(self, order: T0Order) -> T0Order:
        now = datetime.utcnow()
        if order.id is None:
            order.id = self._allocate_id()
            order.created_at = now
        order.updated_at = now
        self._t0_orders[order.id] = replace(order)
        return order

    async def delete_t0_order(self, order_id: int) -> None:
        self._t0_orders.pop(order_id, None)

    async def get_dividend(self, dividend_id: int) -> Optional[Dividend]:
        dividend = self._dividends.get(dividend_id)
        return replace(dividend) if dividend else None

    async def find_dividends(
        self,
        *,
        owner_id: str | None = None,
        stock_code: str | None = None,
        dividend_type: DividendType | None = None,
    ) -> List[Dividend]:
        matches = [
            replace(dividend)
            for dividend in self._dividends.values()
            if (owner_id is None or dividend.owner_id == owner_id)
            and (not stock_code or dividend.stock_code == stock_code)
            and (dividend_type is None or dividend.type == dividend_type)
        ]
        matches.sort(key=lambda dividend: (dividend.dividend_date, dividend.id or 0), reverse=True)
        return matches

    async def save_dividend(self, dividend: Dividend) -> Dividend:
        if dividend.id is None:
            dividend.id = self._allocate_id()
            dividend.created_at = datetime.utcnow()
        self._dividends[dividend.id] = replace(dividend)
        return dividend

    async def delete_dividend(self, dividend_id: int) -> None:
        self._dividends.pop(dividend_id, None)


__all__ = ["RecordStore", "InMemoryRecordStore"]
