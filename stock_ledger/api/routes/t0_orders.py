"""Intraday (T0) order endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import LedgerSettings
from ...errors import LedgerError
from ...models import T0Order
from ..database import Database
from ..dependencies import RequestContext, build_orchestrator, get_request_context, http_error
from ..schemas import T0OrderCreateRequest, T0OrderSchema, T0OrderUpdateRequest


def _serialize_order(order: T0Order) -> T0OrderSchema:
    return T0OrderSchema.model_validate(order, from_attributes=True)


def get_t0_orders_router(database: Database, settings: LedgerSettings) -> APIRouter:
    router = APIRouter(prefix="/t0-orders", tags=["t0-orders"])

    @router.get("", response_model=list[T0OrderSchema])
    async def list_orders(
        stock_code: str | None = Query(default=None),
        start_date: date | None = Query(default=None),
        end_date: date | None = Query(default=None),
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> list[T0OrderSchema]:
        orchestrator = build_orchestrator(session, settings)
        orders = await orchestrator.store.find_t0_orders(
            owner_id=context.owner_scope,
            stock_code=stock_code.strip().upper() if stock_code and stock_code != "all" else None,
            start=start_date,
            end=end_date,
        )
        return [_serialize_order(order) for order in reversed(orders)]

    @router.post("", response_model=T0OrderSchema, status_code=status.HTTP_201_CREATED)
    async def create_order(
        payload: T0OrderCreateRequest,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> T0OrderSchema:
        orchestrator = build_orchestrator(session, settings)
        order = T0Order(
            stock_code=payload.stock_code,
            company_id=payload.company_id,
            owner_id=context.user_id,
            trade_date=payload.trade_date,
            quantity=payload.quantity,
            buy_price=payload.buy_price,
            sell_price=payload.sell_price,
        )
        try:
            order = await orchestrator.create_t0_order(order)
        except (LedgerError, ValueError) as exc:
            raise http_error(exc, reference_status=status.HTTP_400_BAD_REQUEST) from exc
        return _serialize_order(order)

    @router.get("/{order_id}", response_model=T0OrderSchema)
    async def get_order(
        order_id: int,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> T0OrderSchema:
        orchestrator = build_orchestrator(session, settings)
        try:
            order = await orchestrator.get_t0_order(order_id, owner_id=context.owner_scope)
        except LedgerError as exc:
            raise http_error(exc) from exc
        return _serialize_order(order)

    @router.put("/{order_id}", response_model=T0OrderSchema)
    async def update_order(
        order_id: int,
        payload: T0OrderUpdateRequest,
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> T0OrderSchema:
        orchestrator = build_orchestrator(session, settings)
        try:
            existing = await orchestrator.get_t0_order(order_id, owner_id=context.owner_scope)
        except LedgerError as exc:
            raise http_error(exc) from exc
        try:
            order = await orchestrator.update_t0_order(
                existing.id, payload.model_dump(exclude_unset=True), owner_id=context.owner_scope
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
            await orchestrator.delete_t0_order(order_id, owner_id=context.owner_scope)
        except LedgerError as exc:
            raise http_error(exc) from exc
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


__all__ = ["get_t0_orders_router"]
