"""Aggregate statistics for the caller's records."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import LedgerSettings
from ..database import Database
from ..dependencies import RequestContext, build_orchestrator, get_request_context
from ..schemas import StatsSchema


def get_stats_router(database: Database, settings: LedgerSettings) -> APIRouter:
    router = APIRouter(prefix="/stats", tags=["stats"])

    @router.get("", response_model=StatsSchema)
    async def get_stats(
        session: AsyncSession = Depends(database.get_session),
        context: RequestContext = Depends(get_request_context),
    ) -> StatsSchema:
        orchestrator = build_orchestrator(session, settings)
        stats = await orchestrator.stats(owner_id=context.owner_scope)
        return StatsSchema(**asdict(stats))

    return router


__all__ = ["get_stats_router"]
