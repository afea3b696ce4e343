"""Database connection management for Questboard.

This module provides factory functions for creating SQLAlchemy async engines
and session factories, configured from the application's DatabaseConfig.

PostgreSQL (asyncpg) gets a sized connection pool; SQLite (aiosqlite) uses
SQLAlchemy's default pool for the dialect, which rejects pool sizing.

Example usage:
    >>> from questboard.config import DatabaseConfig
    >>> from questboard.database.connection import get_engine, get_session_factory
    >>>
    >>> config = DatabaseConfig(url="sqlite+aiosqlite:///./questboard.db")
    >>> engine = get_engine(config)
    >>> await ensure_schema(engine)
    >>> SessionFactory = get_session_factory(engine)
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from questboard.config import DatabaseConfig
from questboard.database.models.base import Base
from questboard.errors import BackingStoreUnavailableError


def get_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create an async SQLAlchemy engine from database configuration.

    Args:
        config: Database configuration containing URL, pool settings,
                and SQL echo preference.

    Returns:
        Configured AsyncEngine instance.

    Raises:
        BackingStoreUnavailableError: If no database URL is configured.
    """
    if not config.url:
        raise BackingStoreUnavailableError("backing store not configured")

    kwargs: dict[str, Any] = {"echo": config.echo}
    if not config.url.startswith("sqlite"):
        kwargs["pool_size"] = config.pool_size
        kwargs["max_overflow"] = config.max_overflow

    return create_async_engine(config.url, **kwargs)


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the given engine.

    The returned factory produces AsyncSession instances configured with
    expire_on_commit=False so attributes stay readable after commit
    without lazy loads.

    Args:
        engine: AsyncEngine to bind sessions to.

    Returns:
        Configured async_sessionmaker that produces AsyncSession instances.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
