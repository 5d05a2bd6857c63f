"""Entrypoint for the stock ledger FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import LedgerSettings, get_settings
from ..core.logging import setup_logging
from ..core.telemetry import setup_telemetry
from .database import Database
from .routes import get_api_router
from .schemas import HealthResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI, db: Database):
    await db.create_all()
    yield
    await db.dispose()


def create_app(db: Database | None = None, settings: LedgerSettings | None = None) -> FastAPI:
    settings = settings or get_settings()
    database_instance = db or Database(settings.database_url)

    setup_logging(settings.log_level)
    logger.info("Starting %s with configuration %s", settings.app_name, settings.dict_for_logging())

    app = FastAPI(
        title=f"{settings.app_name} API",
        version="0.1.0",
        lifespan=lambda app: _lifespan(app, database_instance),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(get_api_router(database_instance, settings))

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="stock-ledger")

    setup_telemetry(app, settings, database_instance.engine)
    return app


app = create_app()
