"""Dividend endpoints, including applying and reverting transforms."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import LedgerSettings
from ...errors import LedgerError
from ...models import Dividend, DividendType, TransformResult
from ..database import Database
from ..dependencies import RequestContext, build_orchestrator, get_request_context, http_error
from ..schemas import (
    DividendCreateRequest,
    DividendSchema,
    DividendTransformResponse,
    DividendUpdateRequest,
)


def _serialize_dividend(dividend: Dividend) -> DividendSchema:
    return DividendSchema.model_validate(dividend, from_attributes=True)


def _transform_response(result: TransformResult, message: str) -> DividendTransformResponse:
    return DividendTransformResponse(
        message=message,
        adjusted=result.adjusted,
        dividend=_serialize_dividend(result.dividend),
    )


def get_dividends_router(database: Database, settings: LedgerSettings) -> APIRouter:
    router = APIRouter(prefix="/dividends", tags=["dividends"])

    @router.get("", response_model=list[DividendSchema])
    async def list_dividends(
        stock_code: str | None = Query(default=None),
        type: DividendType | None = Query(default=None),
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> list[DividendSchema]:
        orchestrator = build_orchestrator(session, settings)
        dividends = await orchestrator.store.find_dividends(
            owner_id=context.owner_scope,
            stock_code=stock_code.strip().upper() if stock_code and stock_code != "all" else None,
            dividend_type=type,
        )
        return [_serialize_dividend(dividend) for dividend in dividends]

    @router.post("", response_model=DividendSchema, status_code=status.HTTP_201_CREATED)
    async def create_dividend(
        payload: DividendCreateRequest,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> DividendSchema:
        orchestrator = build_orchestrator(session, settings)
        dividend = Dividend(
            stock_code=payload.stock_code,
            owner_id=context.user_id,
            dividend_date=payload.dividend_date,
            type=payload.type,
            value=Decimal(str(payload.value)),
        )
        try:
            dividend = await orchestrator.create_dividend(dividend)
        except ValueError as exc:
            raise http_error(exc) from exc
        return _serialize_dividend(dividend)

    @router.get("/{dividend_id}", response_model=DividendSchema)
    async def get_dividend(
        dividend_id: int,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> DividendSchema:
        orchestrator = build_orchestrator(session, settings)
        try:
            dividend = await orchestrator.get_dividend(dividend_id, owner_id=context.owner_scope)
        except LedgerError as exc:
            raise http_error(exc) from exc
        return _serialize_dividend(dividend)

    @router.put("/{dividend_id}", response_model=DividendSchema)
    async def update_dividend(
        dividend_id: int,
        payload: DividendUpdateRequest,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> DividendSchema:
        orchestrator = build_orchestrator(session, settings)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("value") is not None:
            changes["value"] = Decimal(str(changes["value"]))
        try:
            dividend = await orchestrator.update_dividend(dividend_id, changes, owner_id=context.owner_scope)
        except (LedgerError, ValueError) as exc:
            raise http_error(exc) from exc
        return _serialize_dividend(dividend)

    @router.post("/{dividend_id}/apply", response_model=DividendTransformResponse)
    async def apply_dividend(
        dividend_id: int,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> DividendTransformResponse:
        orchestrator = build_orchestrator(session, settings)
        try:
            result = await orchestrator.apply_dividend(dividend_id, owner_id=context.owner_scope)
        except (LedgerError, ValueError) as exc:
            raise http_error(exc) from exc
        if result.dividend.type == DividendType.CASH:
            message = "Cash dividends do not adjust long-term orders"
        else:
            message = f"Adjusted {result.adjusted} long-term orders"
        return _transform_response(result, message)

    @router.delete("/{dividend_id}", response_model=DividendTransformResponse)
    async def delete_dividend(
        dividend_id: int,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> DividendTransformResponse:
        orchestrator = build_orchestrator(session, settings)
        try:
            result = await orchestrator.delete_dividend(dividend_id, owner_id=context.owner_scope)
        except (LedgerError, ValueError) as exc:
            raise http_error(exc) from exc
        return _transform_response(result, f"Deleted dividend, reverted {result.adjusted} long-term orders")

    return router


__all__ = ["get_dividends_router"]
