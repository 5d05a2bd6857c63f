"""Database utilities for the stock ledger API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncAttrs, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ..config import get_settings


class Base(AsyncAttrs, DeclarativeBase):
    """Declarative base for ORM models."""


class Database:
    """Configure an async SQLAlchemy engine and session factory."""

    def __init__(self, url: str | None = None):
        self._url = url or get_settings().database_url
        self._engine = create_async_engine(self._url, future=True, echo=False)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    @property
    def url(self) -> str:
        return self._url

    @property
    def engine(self):
        return self._engine

    async def create_all(self) -> None:
        """Create all tables defined on the declarative metadata."""

        async with self._engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            yield session

    async def get_session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            yield session


__all__ = ["Base", "Database"]
