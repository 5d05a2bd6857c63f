"""Long-term order endpoints backed by the average-cost ledger."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import LedgerSettings
from ...errors import LedgerError
from ...models import LongTermOrder, OrderType, PositionSummary
from ...orchestrator import normalize_stock_code
from ..database import Database
from ..dependencies import RequestContext, build_orchestrator, get_request_context, http_error
from ..schemas import (
    LongTermOrderCreateRequest,
    LongTermOrderSchema,
    LongTermOrderUpdateRequest,
    PositionSchema,
    RecalculateResponse,
)


def _serialize_order(order: LongTermOrder) -> LongTermOrderSchema:
    return LongTermOrderSchema.model_validate(order, from_attributes=True)


def _serialize_position(summary: PositionSummary) -> PositionSchema:
    return PositionSchema(
        stock_code=summary.key.stock_code,
        company_id=summary.key.company_id,
        owner_id=summary.key.owner_id,
        quantity=summary.quantity,
        cost_basis=summary.cost_basis,
        average_cost=summary.average_cost,
        realized_profit=summary.realized_profit,
        order_count=summary.order_count,
    )


def get_long_term_orders_router(database: Database, settings: LedgerSettings) -> APIRouter:
    router = APIRouter(prefix="/long-term-orders", tags=["long-term-orders"])

    @router.get("", response_model=list[LongTermOrderSchema])
    async def list_orders(
        stock_code: str | None = Query(default=None),
        type: OrderType | None = Query(default=None),
        start_date: date | None = Query(default=None),
        end_date: date | None = Query(default=None),
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> list[LongTermOrderSchema]:
        orchestrator = build_orchestrator(session, settings)
        orders = await orchestrator.store.find_orders(
            stock_code=stock_code.strip().upper() if stock_code and stock_code != "all" else None,
            owner_id=context.owner_scope,
            order_type=type,
            start=start_date,
            end=end_date,
        )
        return [_serialize_order(order) for order in reversed(orders)]

    @router.post("", response_model=LongTermOrderSchema, status_code=status.HTTP_201_CREATED)
    async def create_order(
        payload: LongTermOrderCreateRequest,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> LongTermOrderSchema:
        orchestrator = build_orchestrator(session, settings)
        order = LongTermOrder(
            stock_code=payload.stock_code,
            company_id=payload.company_id,
            owner_id=context.user_id,
            trade_date=payload.trade_date,
            type=payload.type,
            quantity=payload.quantity,
            price=payload.price,
        )
        try:
            order = await orchestrator.create_long_term_order(order)
        except (LedgerError, ValueError) as exc:
            raise http_error(exc, reference_status=status.HTTP_400_BAD_REQUEST) from exc
        return _serialize_order(order)

    @router.get("/positions", response_model=list[PositionSchema])
    async def list_positions(
        stock_code: str | None = Query(default=None),
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> list[PositionSchema]:
        orchestrator = build_orchestrator(session, settings)
        try:
            summaries = await orchestrator.positions(owner_id=context.owner_scope, stock_code=stock_code)
        except ValueError as exc:
            raise http_error(exc) from exc
        return [_serialize_position(summary) for summary in summaries]

    @router.post("/recalculate", response_model=RecalculateResponse)
    async def recalculate(
        stock_code: str = Query(...),
        company_id: int | None = Query(default=None),
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> RecalculateResponse:
        orchestrator = build_orchestrator(session, settings)
        try:
            normalized = normalize_stock_code(stock_code)
            summaries = await orchestrator.recalculate(
                normalized, owner_id=context.owner_scope, company_id=company_id
            )
        except (LedgerError, ValueError) as exc:
            raise http_error(exc) from exc
        return RecalculateResponse(
            stock_code=normalized,
            positions=[_serialize_position(summary) for summary in summaries],
        )

    @router.get("/{order_id}", response_model=LongTermOrderSchema)
    async def get_order(
        order_id: int,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> LongTermOrderSchema:
        orchestrator = build_orchestrator(session, settings)
        try:
            order = await orchestrator.get_long_term_order(order_id, owner_id=context.owner_scope)
        except LedgerError as exc:
            raise http_error(exc) from exc
        return _serialize_order(order)

    @router.put("/{order_id}", response_model=LongTermOrderSchema)
    async def update_order(
        order_id: int,
        payload: LongTermOrderUpdateRequest,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> LongTermOrderSchema:
        orchestrator = build_orchestrator(session, settings)
        changes = payload.model_dump(exclude_unset=True)
        try:
            existing = await orchestrator.get_long_term_order(order_id, owner_id=context.owner_scope)
        except LedgerError as exc:
            raise http_error(exc) from exc
        try:
            order = await orchestrator.update_long_term_order(
                existing.id, changes, owner_id=context.owner_scope
            )
        except (LedgerError, ValueError) as exc:
            raise http_error(exc, reference_status=status.HTTP_400_BAD_REQUEST) from exc
        return _serialize_order(order)

    @router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_order(
        order_id: int,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> Response:
        orchestrator = build_orchestrator(session, settings)
        try:
            await orchestrator.delete_long_term_order(order_id, owner_id=context.owner_scope)
        except LedgerError as exc:
            raise http_error(exc) from exc
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


__all__ = ["get_long_term_orders_router"]
