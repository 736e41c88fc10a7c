"""SQLAlchemy adapter – SqlAlchemySessionFactory."""
from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


class SqlAlchemySessionFactory:
    """Creates async SQLAlchemy sessions from an engine URL.

    In-memory SQLite URLs get a :class:`StaticPool` so every session sees
    the same database.
    """

    def __init__(self, database_url: str, **engine_kwargs: Any) -> None:
        if ":memory:" in database_url:
            engine_kwargs.setdefault("poolclass", StaticPool)
        self._engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(self._engine, class_=AsyncSession, expire_on_commit=False)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def __call__(self) -> AsyncSession:
        return self._session_factory()

    async def dispose(self) -> None:
        await self._engine.dispose()


__all__ = ["SqlAlchemySessionFactory"]
