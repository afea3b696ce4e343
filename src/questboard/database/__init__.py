"""Database layer for Questboard.

This module handles database connections, session management, and the
SQLAlchemy async engine configuration for PostgreSQL or SQLite.

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    ensure_schema: Create missing tables.
    Base: SQLAlchemy declarative base for all models.
"""

from questboard.database.connection import ensure_schema, get_engine, get_session_factory
from questboard.database.models import (
    SCORE_ROW_ID,
    Base,
    ScoreRecord,
    StatusEntry,
    TaskRecord,
    TimestampMixin,
    now_ms,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "ensure_schema",
    "Base",
    "TimestampMixin",
    "now_ms",
    "TaskRecord",
    "ScoreRecord",
    "SCORE_ROW_ID",
    "StatusEntry",
]
