"""ORM models for brokers, orders and dividends."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, Date, DateTime, Enum, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ..models import DividendType, OrderType
from .database import Base

RATE = Numeric(12, 6, asdecimal=True)


class StockCompany(Base):
    __tablename__ = "stock_company"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    buy_fee_rate: Mapped[Decimal] = mapped_column(RATE)
    sell_fee_rate: Mapped[Decimal] = mapped_column(RATE)
    tax_rate: Mapped[Decimal] = mapped_column(RATE)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class LongTermOrderRecord(Base):
    __tablename__ = "long_term_order"
    __table_args__ = (
        Index("ix_long_term_order_key", "stock_code", "company_id", "owner_id", "trade_date"),
        Index("ix_long_term_order_owner", "owner_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64))
    stock_code: Mapped[str] = mapped_column(String(20))
    company_id: Mapped[int] = mapped_column(ForeignKey("stock_company.id", ondelete="RESTRICT"))
    trade_date: Mapped[date] = mapped_column(Date)
    type: Mapped[OrderType] = mapped_column(Enum(OrderType, name="order_type"))
    quantity: Mapped[int] = mapped_column(BigInteger)
    price: Mapped[int] = mapped_column(BigInteger)
    fee_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))
    tax_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))
    fee: Mapped[int] = mapped_column(BigInteger, default=0)
    tax: Mapped[int] = mapped_column(BigInteger, default=0)
    cost_basis: Mapped[int] = mapped_column(BigInteger, default=0)
    profit: Mapped[int] = mapped_column(BigInteger, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class T0OrderRecord(Base):
    __tablename__ = "t0_order"
    __table_args__ = (Index("ix_t0_order_owner_date", "owner_id", "trade_date"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64))
    stock_code: Mapped[str] = mapped_column(String(20), index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("stock_company.id", ondelete="RESTRICT"))
    trade_date: Mapped[date] = mapped_column(Date)
    quantity: Mapped[int] = mapped_column(BigInteger)
    buy_price: Mapped[int] = mapped_column(BigInteger)
    sell_price: Mapped[int] = mapped_column(BigInteger)
    buy_fee_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))
    sell_fee_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))
    tax_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))
    buy_value: Mapped[int] = mapped_column(BigInteger, default=0)
    sell_value: Mapped[int] = mapped_column(BigInteger, default=0)
    buy_fee: Mapped[int] = mapped_column(BigInteger, default=0)
    sell_fee: Mapped[int] = mapped_column(BigInteger, default=0)
    sell_tax: Mapped[int] = mapped_column(BigInteger, default=0)
    profit_before_fees: Mapped[int] = mapped_column(BigInteger, default=0)
    profit_after_fees: Mapped[int] = mapped_column(BigInteger, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class DividendRecord(Base):
    __tablename__ = "dividend"
    __table_args__ = (Index("ix_dividend_owner_stock", "owner_id", "stock_code"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64))
    stock_code: Mapped[str] = mapped_column(String(20))
    dividend_date: Mapped[date] = mapped_column(Date)
    type: Mapped[DividendType] = mapped_column(Enum(DividendType, name="dividend_type"))
    value: Mapped[Decimal] = mapped_column(Numeric(12, 4, asdecimal=True))
    is_used: Mapped[bool] = mapped_column(Boolean, default=False)
    applied_all_owners: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


__all__ = ["StockCompany", "LongTermOrderRecord", "T0OrderRecord", "DividendRecord"]
