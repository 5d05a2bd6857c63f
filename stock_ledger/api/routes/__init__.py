"""HTTP routers for the ledger API."""

from __future__ import annotations

from fastapi import APIRouter

from ...config import LedgerSettings
from ..database import Database
from .companies import get_companies_router
from .dividends import get_dividends_router
from .long_term_orders import get_long_term_orders_router
from .stats import get_stats_router
from .t0_orders import get_t0_orders_router


def get_api_router(database: Database, settings: LedgerSettings) -> APIRouter:
    router = APIRouter()
    router.include_router(get_companies_router(database, settings))
    router.include_router(get_long_term_orders_router(database, settings))
    router.include_router(get_t0_orders_router(database, settings))
    router.include_router(get_dividends_router(database, settings))
    router.include_router(get_stats_router(database, settings))
    return router


__all__ = ["get_api_router"]
