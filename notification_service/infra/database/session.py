"""Async engine and session factory.

The engine is created on first use from DatabaseSettings so importing this
module never opens a connection. Background jobs use ``get_async_session``;
request-scoped code receives its session from the caller.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from notification_service.core.database import Base
from notification_service.core.settings import get_db_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from notification_service.core.settings import DatabaseSettings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_engine_from_settings(settings: DatabaseSettings) -> AsyncEngine:
    """Build an AsyncEngine; pool sizing is skipped for SQLite."""
    kwargs: dict[str, Any] = {"echo": settings.echo}
    if not settings.is_sqlite:
        kwargs.update(
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_pre_ping=settings.pool_pre_ping,
        )
    return create_async_engine(settings.url, **kwargs)


def get_engine() -> AsyncEngine:
    """Get the process-wide engine, creating it on first call."""
    global _engine
    if _engine is None:
        _engine = create_engine_from_settings(get_db_settings())
        logger.info("Database engine created", extra={"dialect": _engine.dialect.name})
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the process-wide session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


@asynccontextmanager
async def get_async_session() -> AsyncIterator[AsyncSession]:
    """Session that commits on success and rolls back on error.

    Example:
        async with get_async_session() as session:
            await service.cleanup_expired(session)
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_database() -> None:
    """Create tables that do not exist yet."""
    # Register the notification tables on Base.metadata
    from notification_service.features.notifications import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured")


async def close_database() -> None:
    """Dispose the engine and forget the cached factory."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None
