"""Score model for Questboard.

A single row (id = 1) holding the global XP total and streak. The level
is not stored; it is always derived from xp.
"""

from __future__ import annotations

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from questboard.database.models.base import Base, TimestampMixin

SCORE_ROW_ID = 1


class ScoreRecord(TimestampMixin, Base):
    """The process-wide score singleton.

    Attributes:
        id: Always SCORE_ROW_ID.
        xp: Cumulative XP, only ever increased by DONE transitions.
        streak: Consecutive-day completion counter.
        last_done_day: UTC day (YYYY-MM-DD) of the latest XP award, or None.
    """

    __tablename__ = "score"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SCORE_ROW_ID)
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_done_day: Mapped[str | None] = mapped_column(Text, nullable=True)
