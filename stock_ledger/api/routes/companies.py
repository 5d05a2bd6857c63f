"""Broker (stock company) endpoints supplying fee schedules."""

from __future__ import annotations

from decimal import Decimal

import sqlalchemy as sa
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import LedgerSettings
from ..database import Database
from ..dependencies import RequestContext, get_request_context
from ..models import LongTermOrderRecord, StockCompany, T0OrderRecord
from ..schemas import CompanyCreateRequest, CompanySchema, CompanyUpdateRequest


def _rate(value: float | None, default: Decimal) -> Decimal:
    return Decimal(str(value)) if value is not None else default


def _serialize_company(company: StockCompany) -> CompanySchema:
    return CompanySchema(
        id=company.id,
        name=company.name,
        buy_fee_rate=float(company.buy_fee_rate),
        sell_fee_rate=float(company.sell_fee_rate),
        tax_rate=float(company.tax_rate),
        is_default=company.is_default,
        created_at=company.created_at,
    )


async def _name_taken(session: AsyncSession, name: str, *, exclude_id: int | None = None) -> bool:
    stmt = select(StockCompany).where(sa.func.lower(StockCompany.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(StockCompany.id != exclude_id)
    return (await session.execute(stmt)).scalars().first() is not None


async def _clear_default(session: AsyncSession) -> None:
    await session.execute(sa.update(StockCompany).values(is_default=False))


def get_companies_router(database: Database, settings: LedgerSettings) -> APIRouter:
    router = APIRouter(prefix="/companies", tags=["companies"])

    @router.get("", response_model=list[CompanySchema])
    async def list_companies(
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> list[CompanySchema]:
        result = await session.execute(
            select(StockCompany).order_by(StockCompany.is_default.desc(), StockCompany.name)
        )
        return [_serialize_company(company) for company in result.scalars().all()]

    @router.post("", response_model=CompanySchema, status_code=status.HTTP_201_CREATED)
    async def create_company(
        payload: CompanyCreateRequest,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> CompanySchema:
        name = payload.name.strip()
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Company name must not be empty")
        if await _name_taken(session, name):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A company with this name already exists")
        if payload.is_default:
            await _clear_default(session)
        company = StockCompany(
            name=name,
            buy_fee_rate=_rate(payload.buy_fee_rate, settings.default_buy_fee_rate),
            sell_fee_rate=_rate(payload.sell_fee_rate, settings.default_sell_fee_rate),
            tax_rate=_rate(payload.tax_rate, settings.default_tax_rate),
            is_default=payload.is_default,
        )
        session.add(company)
        await session.commit()
        await session.refresh(company)
        return _serialize_company(company)

    @router.get("/{company_id}", response_model=CompanySchema)
    async def get_company(
        company_id: int,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> CompanySchema:
        company = await session.get(StockCompany, company_id)
        if company is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
        return _serialize_company(company)

    @router.put("/{company_id}", response_model=CompanySchema)
    async def update_company(
        company_id: int,
        payload: CompanyUpdateRequest,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> CompanySchema:
        company = await session.get(StockCompany, company_id)
        if company is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
        if payload.name is not None:
            name = payload.name.strip()
            if await _name_taken(session, name, exclude_id=company_id):
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A company with this name already exists")
            company.name = name
        for field in ("buy_fee_rate", "sell_fee_rate", "tax_rate"):
            value = getattr(payload, field)
            if value is not None:
                setattr(company, field, Decimal(str(value)))
        if payload.is_default:
            await _clear_default(session)
            company.is_default = True
        elif payload.is_default is False:
            company.is_default = False
        await session.commit()
        await session.refresh(company)
        return _serialize_company(company)

    @router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_company(
        company_id: int,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> Response:
        company = await session.get(StockCompany, company_id)
        if company is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
        for model in (LongTermOrderRecord, T0OrderRecord):
            in_use = await session.execute(select(model.id).where(model.company_id == company_id).limit(1))
            if in_use.first() is not None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Company is referenced by existing orders",
                )
        await session.delete(company)
        await session.commit()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


__all__ = ["get_companies_router"]
