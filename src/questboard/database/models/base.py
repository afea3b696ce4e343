"""SQLAlchemy declarative base and common column mixins for Questboard.

Timestamps are stored as integer epoch milliseconds rather than database
datetimes: the API exposes them as numbers, and the stale sweeper compares
them arithmetically against the current time.

Example:
    >>> class MyModel(TimestampMixin, Base):
    ...     __tablename__ = "my_table"
    ...     name: Mapped[str] = mapped_column(Text, nullable=False)
"""

from __future__ import annotations

import time

from sqlalchemy import BigInteger
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class Base(DeclarativeBase):
    """SQLAlchemy 2.0 declarative base for all Questboard models."""

    pass


class TimestampMixin:
    """Mixin providing created_at and updated_at epoch-millisecond columns.

    The state machine sets both explicitly so that one injected clock
    drives every timestamp; the defaults only cover rows written by other
    code paths.

    Attributes:
        created_at: Milliseconds since epoch at row creation.
        updated_at: Milliseconds since epoch at the latest mutation.
    """

    created_at: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=now_ms,
    )
    updated_at: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=now_ms,
        onupdate=now_ms,
    )
