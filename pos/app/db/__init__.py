"""Async engine and session helpers.

The application builds one engine per process from ``database_url`` and
hands an ``async_sessionmaker`` to :class:`~pos.app.repos_sqlalchemy.SQLStorage`.
"""

from __future__ import annotations

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ..models import Base
from ..obs import add_query_logger


def get_engine(url: str) -> AsyncEngine:
    """Create an :class:`AsyncEngine` for ``url`` with query logging attached.

    In-memory SQLite URLs use a static pool so every session shares the same
    database.
    """

    parsed = make_url(url)
    kwargs: dict = {}
    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_async_engine(url, **kwargs)
    add_query_logger(engine, parsed.get_backend_name())
    return engine


def get_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to ``engine``."""

    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_all(engine: AsyncEngine) -> None:
    """Create any missing tables."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def create_test_engine() -> AsyncEngine:
    """Return an in-memory SQLite engine for tests."""

    return get_engine("sqlite+aiosqlite://")


__all__ = ["create_all", "create_test_engine", "get_engine", "get_sessionmaker"]
