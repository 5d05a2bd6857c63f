"""SQLAlchemy implementations of the record store and fee schedule lookup."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ReferenceNotFound
from ..models import Dividend, DividendType, FeeSchedule, LongTermOrder, OrderType, T0Order
from .models import DividendRecord, LongTermOrderRecord, StockCompany, T0OrderRecord

_ORDER_FIELDS = (
    "owner_id",
    "stock_code",
    "company_id",
    "trade_date",
    "type",
    "quantity",
    "price",
    "fee_rate",
    "tax_rate",
    "fee",
    "tax",
    "cost_basis",
    "profit",
)
_T0_FIELDS = (
    "owner_id",
    "stock_code",
    "company_id",
    "trade_date",
    "quantity",
    "buy_price",
    "sell_price",
    "buy_fee_rate",
    "sell_fee_rate",
    "tax_rate",
    "buy_value",
    "sell_value",
    "buy_fee",
    "sell_fee",
    "sell_tax",
    "profit_before_fees",
    "profit_after_fees",
)
_DIVIDEND_FIELDS = ("owner_id", "stock_code", "dividend_date", "type", "value", "is_used", "applied_all_owners")


def _decimal(value: Decimal | float | int | None) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def order_from_row(row: LongTermOrderRecord) -> LongTermOrder:
    return LongTermOrder(
        id=row.id,
        owner_id=row.owner_id,
        stock_code=row.stock_code,
        company_id=row.company_id,
        trade_date=row.trade_date,
        type=OrderType(row.type),
        quantity=int(row.quantity),
        price=int(row.price),
        fee_rate=_decimal(row.fee_rate),
        tax_rate=_decimal(row.tax_rate),
        fee=int(row.fee or 0),
        tax=int(row.tax or 0),
        cost_basis=int(row.cost_basis or 0),
        profit=int(row.profit or 0),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def t0_from_row(row: T0OrderRecord) -> T0Order:
    return T0Order(
        id=row.id,
        owner_id=row.owner_id,
        stock_code=row.stock_code,
        company_id=row.company_id,
        trade_date=row.trade_date,
        quantity=int(row.quantity),
        buy_price=int(row.buy_price),
        sell_price=int(row.sell_price),
        buy_fee_rate=_decimal(row.buy_fee_rate),
        sell_fee_rate=_decimal(row.sell_fee_rate),
        tax_rate=_decimal(row.tax_rate),
        buy_value=int(row.buy_value or 0),
        sell_value=int(row.sell_value or 0),
        buy_fee=int(row.buy_fee or 0),
        sell_fee=int(row.sell_fee or 0),
        sell_tax=int(row.sell_tax or 0),
        profit_before_fees=int(row.profit_before_fees or 0),
        profit_after_fees=int(row.profit_after_fees or 0),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def dividend_from_row(row: DividendRecord) -> Dividend:
    return Dividend(
        id=row.id,
        owner_id=row.owner_id,
        stock_code=row.stock_code,
        dividend_date=row.dividend_date,
        type=DividendType(row.type),
        value=_decimal(row.value),
        is_used=bool(row.is_used),
        applied_all_owners=bool(row.applied_all_owners),
        created_at=row.created_at,
    )


def _in_range(stmt: Select, column, start: date | None, end: date | None) -> Select:
    if start:
        stmt = stmt.where(column >= start)
    if end:
        stmt = stmt.where(column <= end)
    return stmt


class SqlFeeScheduleProvider:
    """Resolve fee schedules from :class:`StockCompany` rows."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def lookup(self, company_id: int) -> FeeSchedule:
        company = await self._session.get(StockCompany, company_id)
        if company is None:
            raise ReferenceNotFound("Company", company_id)
        return FeeSchedule(
            buy_fee_rate=_decimal(company.buy_fee_rate),
            sell_fee_rate=_decimal(company.sell_fee_rate),
            tax_rate=_decimal(company.tax_rate),
        )


class SqlRecordStore:
    """Record store over one async session; every save commits on its own."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _save(self, model, record, fields: tuple[str, ...]):
        now = datetime.utcnow()
        row = None
        if record.id is not None:
            row = await self._session.get(model, record.id)
            if row is None:
                raise ReferenceNotFound(model.__name__, record.id)
        if row is None:
            row = model(created_at=now)
            self._session.add(row)
        for name in fields:
            setattr(row, name, getattr(record, name))
        row.updated_at = now
        await self._session.commit()
        record.id = row.id
        record.created_at = row.created_at
        if hasattr(record, "updated_at"):
            record.updated_at = row.updated_at
        return record

    async def _delete(self, model, record_id: int) -> None:
        row = await self._session.get(model, record_id)
        if row is not None:
            await self._session.delete(row)
            await self._session.commit()

    async def get_order(self, order_id: int) -> Optional[LongTermOrder]:
        row = await self._session.get(LongTermOrderRecord, order_id)
        return order_from_row(row) if row else None

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
        stmt = select(LongTermOrderRecord)
        if stock_code:
            stmt = stmt.where(LongTermOrderRecord.stock_code == stock_code)
        if owner_id is not None:
            stmt = stmt.where(LongTermOrderRecord.owner_id == owner_id)
        if company_id is not None:
            stmt = stmt.where(LongTermOrderRecord.company_id == company_id)
        if order_type is not None:
            stmt = stmt.where(LongTermOrderRecord.type == order_type)
        if before:
            stmt = stmt.where(LongTermOrderRecord.trade_date < before)
        stmt = _in_range(stmt, LongTermOrderRecord.trade_date, start, end)
        stmt = stmt.order_by(
            LongTermOrderRecord.trade_date,
            LongTermOrderRecord.created_at,
            LongTermOrderRecord.id,
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [order_from_row(row) for row in rows]

    async def save_order(self, order: LongTermOrder) -> LongTermOrder:
        return await self._save(LongTermOrderRecord, order, _ORDER_FIELDS)

    async def delete_order(self, order_id: int) -> None:
        await self._delete(LongTermOrderRecord, order_id)

    async def get_t0_order(self, order_id: int) -> Optional[T0Order]:
        row = await self._session.get(T0OrderRecord, order_id)
        return t0_from_row(row) if row else None

    async def find_t0_orders(
        self,
        *,
        owner_id: str | None = None,
        stock_code: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> List[T0Order]:
        stmt = select(T0OrderRecord)
        if owner_id is not None:
            stmt = stmt.where(T0OrderRecord.owner_id == owner_id)
        if stock_code:
            stmt = stmt.where(T0OrderRecord.stock_code == stock_code)
        stmt = _in_range(stmt, T0OrderRecord.trade_date, start, end)
        stmt = stmt.order_by(T0OrderRecord.trade_date, T0OrderRecord.id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [t0_from_row(row) for row in rows]

    async def save_t0_order(self, order: T0Order) -> T0Order:
        return await self._save(T0OrderRecord, order, _T0_FIELDS)

    async def delete_t0_order(self, order_id: int) -> None:
        await self._delete(T0OrderRecord, order_id)

    async def get_dividend(self, dividend_id: int) -> Optional[Dividend]:
        row = await self._session.get(DividendRecord, dividend_id)
        return dividend_from_row(row) if row else None

    async def find_dividends(
        self,
        *,
        owner_id: str | None = None,
        stock_code: str | None = None,
        dividend_type: DividendType | None = None,
    ) -> List[Dividend]:
        stmt = select(DividendRecord)
        if owner_id is not None:
            stmt = stmt.where(DividendRecord.owner_id == owner_id)
        if stock_code:
            stmt = stmt.where(DividendRecord.stock_code == stock_code)
        if dividend_type is not None:
            stmt = stmt.where(DividendRecord.type == dividend_type)
        stmt = stmt.order_by(DividendRecord.dividend_date.desc(), DividendRecord.id.desc())
        rows = (await self._session.execute(stmt)).scalars().all()
        return [dividend_from_row(row) for row in rows]

    async def save_dividend(self, dividend: Dividend) -> Dividend:
        return await self._save(DividendRecord, dividend, _DIVIDEND_FIELDS)

    async def delete_dividend(self, dividend_id: int) -> None:
        await self._delete(DividendRecord, dividend_id)


__all__ = [
    "SqlFeeScheduleProvider",
    "SqlRecordStore",
    "order_from_row",
    "t0_from_row",
    "dividend_from_row",
]
