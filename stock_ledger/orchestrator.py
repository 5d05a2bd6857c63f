"""Coordinates fee lookup, ledger derivation and dividend transforms.

The orchestrator is the single write path for long-term orders: every
create, edit, recalculation and dividend transform goes through a
:class:`~stock_ledger.ledger.PositionLedger` built from the store for the
affected key, and the resulting records are saved one by one.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Iterable, Mapping

from .dividends import apply_dividend, revert_dividend
from .errors import DividendAlreadyApplied, DividendTransformIncomplete, RechainIncomplete, ReferenceNotFound
from .fees import FeeScheduleProvider
from .ledger import PositionLedger, derive_buy, derive_charges, group_by_key
from .models import (
    Dividend,
    DividendType,
    FeeSchedule,
    LedgerKey,
    LedgerStats,
    LongTermOrder,
    OrderType,
    PositionSummary,
    StockStats,
    T0Order,
    TransformResult,
)
from .money import to_decimal
from .store import RecordStore
from .t0 import compute_t0

logger = logging.getLogger(__name__)

LONG_TERM_EDITABLE = ("stock_code", "company_id", "type", "quantity", "price", "trade_date")
T0_EDITABLE = ("stock_code", "company_id", "quantity", "buy_price", "sell_price", "trade_date")
DIVIDEND_EDITABLE = ("stock_code", "dividend_date", "type", "value")
_RESCAN_FIELDS = ("stock_code", "type", "quantity", "trade_date")


def normalize_stock_code(code: str) -> str:
    normalized = code.strip().upper()
    if not normalized:
        raise ValueError("Stock code must not be empty")
    return normalized


def _apply_changes(record: Any, changes: Mapping[str, Any], allowed: Iterable[str]) -> None:
    allowed = set(allowed)
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
    for name, value in changes.items():
        if value is not None:
            setattr(record, name, value)


class LedgerOrchestrator:
    """Write path for trade and dividend records.

    ``owner_id`` arguments scope every lookup to one owner; ``None`` is a
    privileged caller acting across all owners.
    """

    def __init__(
        self,
        store: RecordStore,
        fees: FeeScheduleProvider,
        *,
        rechain_after_dividend: bool = True,
    ):
        self.store = store
        self.fees = fees
        self.rechain_after_dividend = rechain_after_dividend

    # Long-term orders

    async def _ledger_for(self, key: LedgerKey) -> PositionLedger:
        orders = await self.store.find_orders(
            stock_code=key.stock_code,
            company_id=key.company_id,
            owner_id=key.owner_id,
        )
        return PositionLedger(key, orders)

    async def _get_order(self, order_id: int, owner_id: str | None) -> LongTermOrder:
        order = await self.store.get_order(order_id)
        if order is None or (owner_id is not None and order.owner_id != owner_id):
            raise ReferenceNotFound("LongTermOrder", order_id)
        return order

    async def _capture_rates(self, order: LongTermOrder) -> None:
        schedule = await self.fees.lookup(order.company_id)
        order.fee_rate = schedule.fee_rate_for(order.type)
        order.tax_rate = schedule.tax_rate

    async def create_long_term_order(self, order: LongTermOrder) -> LongTermOrder:
        order.stock_code = normalize_stock_code(order.stock_code)
        order.type = OrderType(order.type)
        await self._capture_rates(order)
        ledger = await self._ledger_for(order.key)
        ledger.record(order)
        return await self.store.save_order(order)

    async def update_long_term_order(
        self,
        order_id: int,
        changes: Mapping[str, Any],
        *,
        owner_id: str | None,
    ) -> LongTermOrder:
        order = await self._get_order(order_id, owner_id)
        previous = replace(order)
        _apply_changes(order, changes, LONG_TERM_EDITABLE)
        order.stock_code = normalize_stock_code(order.stock_code)
        order.type = OrderType(order.type)

        if order.company_id != previous.company_id or order.type != previous.type:
            await self._capture_rates(order)

        rescan = any(getattr(order, name) != getattr(previous, name) for name in _RESCAN_FIELDS)
        ledger = await self._ledger_for(order.key)
        ledger.record(order, rescan=rescan)
        return await self.store.save_order(order)

    async def delete_long_term_order(self, order_id: int, *, owner_id: str | None) -> None:
        order = await self._get_order(order_id, owner_id)
        await self.store.delete_order(order.id)

    async def get_long_term_order(self, order_id: int, *, owner_id: str | None) -> LongTermOrder:
        return await self._get_order(order_id, owner_id)

    async def recalculate(
        self,
        stock_code: str,
        *,
        owner_id: str | None,
        company_id: int | None = None,
    ) -> list[PositionSummary]:
        """Replay and persist every key of ``stock_code`` in scope."""

        orders = await self.store.find_orders(
            stock_code=normalize_stock_code(stock_code),
            owner_id=owner_id,
            company_id=company_id,
        )
        summaries = []
        for key, key_orders in group_by_key(orders).items():
            ledger = PositionLedger(key, key_orders)
            for order in ledger.replay():
                await self.store.save_order(order)
            summaries.append(ledger.summary())
            logger.info("Recalculated %d orders for %s", len(ledger), key)
        return summaries

    async def positions(
        self,
        *,
        owner_id: str | None,
        stock_code: str | None = None,
    ) -> list[PositionSummary]:
        orders = await self.store.find_orders(
            stock_code=normalize_stock_code(stock_code) if stock_code else None,
            owner_id=owner_id,
        )
        summaries = [PositionLedger(key, key_orders).summary() for key, key_orders in group_by_key(orders).items()]
        summaries.sort(key=lambda s: (s.key.stock_code, s.key.company_id, s.key.owner_id))
        return summaries

    # T0 orders

    async def _get_t0_order(self, order_id: int, owner_id: str | None) -> T0Order:
        order = await self.store.get_t0_order(order_id)
        if order is None or (owner_id is not None and order.owner_id != owner_id):
            raise ReferenceNotFound("T0Order", order_id)
        return order

    async def create_t0_order(self, order: T0Order) -> T0Order:
        order.stock_code = normalize_stock_code(order.stock_code)
        schedule = await self.fees.lookup(order.company_id)
        compute_t0(order, schedule)
        return await self.store.save_t0_order(order)

    async def update_t0_order(
        self,
        order_id: int,
        changes: Mapping[str, Any],
        *,
        owner_id: str | None,
    ) -> T0Order:
        order = await self._get_t0_order(order_id, owner_id)
        previous_company = order.company_id
        _apply_changes(order, changes, T0_EDITABLE)
        order.stock_code = normalize_stock_code(order.stock_code)
        if order.company_id != previous_company:
            schedule = await self.fees.lookup(order.company_id)
        else:
            schedule = FeeSchedule(order.buy_fee_rate, order.sell_fee_rate, order.tax_rate)
        compute_t0(order, schedule)
        return await self.store.save_t0_order(order)

    async def delete_t0_order(self, order_id: int, *, owner_id: str | None) -> None:
        order = await self._get_t0_order(order_id, owner_id)
        await self.store.delete_t0_order(order.id)

    async def get_t0_order(self, order_id: int, *, owner_id: str | None) -> T0Order:
        return await self._get_t0_order(order_id, owner_id)

    # Dividends

    async def _get_dividend(self, dividend_id: int, owner_id: str | None) -> Dividend:
        dividend = await self.store.get_dividend(dividend_id)
        if dividend is None or (owner_id is not None and dividend.owner_id != owner_id):
            raise ReferenceNotFound("Dividend", dividend_id)
        return dividend

    async def create_dividend(self, dividend: Dividend) -> Dividend:
        dividend.stock_code = normalize_stock_code(dividend.stock_code)
        dividend.type = DividendType(dividend.type)
        dividend.value = to_decimal(dividend.value)
        if dividend.value < 0:
            raise ValueError("Dividend value must not be negative")
        return await self.store.save_dividend(dividend)

    async def update_dividend(
        self,
        dividend_id: int,
        changes: Mapping[str, Any],
        *,
        owner_id: str | None,
    ) -> Dividend:
        dividend = await self._get_dividend(dividend_id, owner_id)
        if dividend.is_used and any(value is not None for value in changes.values()):
            raise DividendAlreadyApplied(dividend.id)
        _apply_changes(dividend, changes, DIVIDEND_EDITABLE)
        dividend.stock_code = normalize_stock_code(dividend.stock_code)
        dividend.type = DividendType(dividend.type)
        dividend.value = to_decimal(dividend.value)
        if dividend.value < 0:
            raise ValueError("Dividend value must not be negative")
        return await self.store.save_dividend(dividend)

    async def get_dividend(self, dividend_id: int, *, owner_id: str | None) -> Dividend:
        return await self._get_dividend(dividend_id, owner_id)

    async def apply_dividend(self, dividend_id: int, *, owner_id: str | None) -> TransformResult:
        """Run the forward transform for a dividend that has not been used.

        A privileged caller transforms every owner's orders; the scope is
        recorded on the dividend so that the revert selects the same set.
        """

        dividend = await self._get_dividend(dividend_id, owner_id)
        if dividend.is_used:
            raise DividendAlreadyApplied(dividend.id)
        orders = await self.store.find_orders(
            stock_code=dividend.stock_code,
            owner_id=owner_id,
            before=dividend.dividend_date,
        )
        result = apply_dividend(dividend, orders)
        if dividend.type == DividendType.STOCK:
            dividend.applied_all_owners = owner_id is None
            rechained = await self._derive_after_transform(result)
            await self._save_transformed(result)
            await self.store.save_dividend(dividend)
            await self._save_rechained(result, rechained)
        logger.info(
            "Applied %s dividend %s%% on %s dated %s: %d orders adjusted",
            dividend.type.value,
            dividend.value,
            dividend.stock_code,
            dividend.dividend_date,
            result.adjusted,
        )
        return result

    async def delete_dividend(self, dividend_id: int, *, owner_id: str | None) -> TransformResult:
        """Revert a used dividend over the orders it was applied to, then delete it."""

        dividend = await self._get_dividend(dividend_id, owner_id)
        if not dividend.is_used:
            await self.store.delete_dividend(dividend.id)
            return TransformResult(dividend=dividend, adjusted=0)

        orders = await self.store.find_orders(
            stock_code=dividend.stock_code,
            owner_id=None if dividend.applied_all_owners else dividend.owner_id,
            before=dividend.dividend_date,
        )
        result = revert_dividend(dividend, orders)
        rechained = await self._derive_after_transform(result)
        await self._save_transformed(result)
        await self.store.delete_dividend(dividend.id)
        logger.info(
            "Reverted %s dividend %s%% on %s: %d orders restored",
            dividend.type.value,
            dividend.value,
            dividend.stock_code,
            result.adjusted,
        )
        await self._save_rechained(result, rechained)
        return result

    async def _derive_after_transform(self, result: TransformResult) -> list[LongTermOrder]:
        """Re-derive transformed orders in memory; return the other orders to save.

        With rechaining on, every key touched by the transform is replayed and
        its untransformed orders are returned. Otherwise only the transformed
        orders get their fee and BUY cost basis re-derived.
        """

        if not self.rechain_after_dividend:
            for order in result.orders:
                if order.type == OrderType.BUY:
                    derive_buy(order)
                else:
                    derive_charges(order)
            return []

        transformed = {order.id: order for order in result.orders}
        rechained: list[LongTermOrder] = []
        for key in {order.key for order in result.orders}:
            stored = await self._ledger_for(key)
            ledger = PositionLedger(key, [transformed.get(order.id, order) for order in stored.orders])
            ledger.replay()
            rechained.extend(order for order in ledger.orders if order.id not in transformed)
        return rechained

    async def _save_transformed(self, result: TransformResult) -> None:
        """Save the transformed orders one by one.

        Saving is not atomic; a failure leaves earlier orders saved and is
        reported with the counts on either side. The dividend state is only
        persisted once this returns.
        """

        total = len(result.orders)
        for saved, order in enumerate(result.orders):
            try:
                await self.store.save_order(order)
            except Exception as exc:
                logger.exception(
                    "Dividend transform for %s stopped after %d of %d orders",
                    result.dividend.stock_code,
                    saved,
                    total,
                )
                raise DividendTransformIncomplete(saved, total - saved) from exc

    async def _save_rechained(self, result: TransformResult, rechained: list[LongTermOrder]) -> None:
        for saved, order in enumerate(rechained):
            try:
                await self.store.save_order(order)
            except Exception as exc:
                logger.exception(
                    "Replay of %s after dividend %s stopped after %d of %d orders",
                    result.dividend.stock_code,
                    result.dividend.id,
                    saved,
                    len(rechained),
                )
                raise RechainIncomplete(result.dividend.stock_code, saved, len(rechained) - saved) from exc

    # Reporting

    async def stats(self, *, owner_id: str | None) -> LedgerStats:
        orders = await self.store.find_orders(owner_id=owner_id)
        t0_orders = await self.store.find_t0_orders(owner_id=owner_id)
        dividends = await self.store.find_dividends(owner_id=owner_id)

        stats = LedgerStats(
            long_term_order_count=len(orders),
            t0_order_count=len(t0_orders),
            dividend_count=len(dividends),
        )
        by_stock: dict[str, StockStats] = {}
        for t0 in t0_orders:
            stats.t0_profit_before_fees += t0.profit_before_fees
            stats.t0_profit_after_fees += t0.profit_after_fees
            stats.t0_buy_value += t0.buy_value
            stats.t0_sell_value += t0.sell_value
            entry = by_stock.setdefault(t0.stock_code, StockStats(stock_code=t0.stock_code))
            entry.t0_order_count += 1
            entry.t0_profit_before_fees += t0.profit_before_fees
            entry.t0_profit_after_fees += t0.profit_after_fees
        for order in orders:
            entry = by_stock.setdefault(order.stock_code, StockStats(stock_code=order.stock_code))
            if order.type == OrderType.BUY:
                entry.buy_orders += 1
                entry.buy_quantity += order.quantity
            else:
                entry.sell_orders += 1
                entry.sell_quantity += order.quantity
                entry.realized_profit += order.profit
                stats.long_term_realized_profit += order.profit
        stats.by_stock = sorted(by_stock.values(), key=lambda s: s.stock_code)
        return stats


__all__ = [
    "LedgerOrchestrator",
    "normalize_stock_code",
    "LONG_TERM_EDITABLE",
    "T0_EDITABLE",
    "DIVIDEND_EDITABLE",
]
