"""SQLAlchemy ORM models for Questboard.

This module defines the database schema: tasks, the score singleton and
the status key/value table.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from questboard.database.models.base import Base, TimestampMixin, now_ms
from questboard.database.models.score import SCORE_ROW_ID, ScoreRecord
from questboard.database.models.status import StatusEntry
from questboard.database.models.task import TaskRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "now_ms",
    "TaskRecord",
    "ScoreRecord",
    "SCORE_ROW_ID",
    "StatusEntry",
]
