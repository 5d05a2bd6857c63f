"""Pydantic schemas for API payloads."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models import DividendType, OrderType


class HealthResponse(BaseModel):
    status: str
    service: str


class CompanyCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["SSI"])
    buy_fee_rate: float | None = Field(default=None, ge=0, description="Defaults to the configured buy fee rate")
    sell_fee_rate: float | None = Field(default=None, ge=0)
    tax_rate: float | None = Field(default=None, ge=0)
    is_default: bool = Field(default=False)


class CompanyUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    buy_fee_rate: float | None = Field(default=None, ge=0)
    sell_fee_rate: float | None = Field(default=None, ge=0)
    tax_rate: float | None = Field(default=None, ge=0)
    is_default: bool | None = None


class CompanySchema(BaseModel):
    id: int
    name: str
    buy_fee_rate: float
    sell_fee_rate: float
    tax_rate: float
    is_default: bool
    created_at: datetime


class LongTermOrderCreateRequest(BaseModel):
    stock_code: str = Field(..., min_length=1, max_length=20, examples=["HPG"])
    company_id: int
    type: OrderType
    quantity: int = Field(..., gt=0)
    price: int = Field(..., ge=0)
    trade_date: date


class LongTermOrderUpdateRequest(BaseModel):
    stock_code: str | None = Field(default=None, min_length=1, max_length=20)
    company_id: int | None = None
    type: OrderType | None = None
    quantity: int | None = Field(default=None, gt=0)
    price: int | None = Field(default=None, ge=0)
    trade_date: date | None = None


class LongTermOrderSchema(BaseModel):
    id: int
    stock_code: str
    company_id: int
    owner_id: str
    trade_date: date
    type: OrderType
    quantity: int
    price: int
    fee_rate: float
    tax_rate: float
    fee: int
    tax: int
    cost_basis: int
    profit: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PositionSchema(BaseModel):
    stock_code: str
    company_id: int
    owner_id: str
    quantity: int
    cost_basis: int
    average_cost: int
    realized_profit: int
    order_count: int


class RecalculateResponse(BaseModel):
    stock_code: str
    positions: list[PositionSchema]


class T0OrderCreateRequest(BaseModel):
    stock_code: str = Field(..., min_length=1, max_length=20, examples=["HPG"])
    company_id: int
    quantity: int = Field(..., gt=0)
    buy_price: int = Field(..., ge=0)
    sell_price: int = Field(..., ge=0)
    trade_date: date


class T0OrderUpdateRequest(BaseModel):
    stock_code: str | None = Field(default=None, min_length=1, max_length=20)
    company_id: int | None = None
    quantity: int | None = Field(default=None, gt=0)
    buy_price: int | None = Field(default=None, ge=0)
    sell_price: int | None = Field(default=None, ge=0)
    trade_date: date | None = None


class T0OrderSchema(BaseModel):
    id: int
    stock_code: str
    company_id: int
    owner_id: str
    trade_date: date
    quantity: int
    buy_price: int
    sell_price: int
    buy_fee_rate: float
    sell_fee_rate: float
    tax_rate: float
    buy_value: int
    sell_value: int
    buy_fee: int
    sell_fee: int
    sell_tax: int
    profit_before_fees: int
    profit_after_fees: int
    created_at: Optional[datetime] = None


class DividendCreateRequest(BaseModel):
    stock_code: str = Field(..., min_length=1, max_length=20, examples=["HPG"])
    dividend_date: date
    type: DividendType
    value: float = Field(..., ge=0, description="Percentage, 10 means 10%")


class DividendUpdateRequest(BaseModel):
    stock_code: str | None = Field(default=None, min_length=1, max_length=20)
    dividend_date: date | None = None
    type: DividendType | None = None
    value: float | None = Field(default=None, ge=0)


class DividendSchema(BaseModel):
    id: int
    stock_code: str
    owner_id: str
    dividend_date: date
    type: DividendType
    value: float
    is_used: bool
    applied_all_owners: bool = False
    created_at: Optional[datetime] = None


class DividendTransformResponse(BaseModel):
    message: str
    adjusted: int
    dividend: DividendSchema


class StockStatsSchema(BaseModel):
    stock_code: str
    t0_order_count: int
    t0_profit_before_fees: int
    t0_profit_after_fees: int
    buy_orders: int
    sell_orders: int
    buy_quantity: int
    sell_quantity: int
    realized_profit: int


class StatsSchema(BaseModel):
    long_term_order_count: int
    t0_order_count: int
    dividend_count: int
    t0_profit_before_fees: int
    t0_profit_after_fees: int
    t0_buy_value: int
    t0_sell_value: int
    long_term_realized_profit: int
    by_stock: list[StockStatsSchema]


__all__ = [
    "HealthResponse",
    "CompanyCreateRequest",
    "CompanyUpdateRequest",
    "CompanySchema",
    "LongTermOrderCreateRequest",
    "LongTermOrderUpdateRequest",
    "LongTermOrderSchema",
    "PositionSchema",
    "RecalculateResponse",
    "T0OrderCreateRequest",
    "T0OrderUpdateRequest",
    "T0OrderSchema",
    "DividendCreateRequest",
    "DividendUpdateRequest",
    "DividendSchema",
    "DividendTransformResponse",
    "StockStatsSchema",
    "StatsSchema",
]
