"""Task model for Questboard.

Defines the tasks table. Column and priority values reuse the enums from
the canonical board schema so the database and the API cannot drift.
"""

from __future__ import annotations

from sqlalchemy import JSON, Enum, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from questboard.board.schema import DEFAULT_XP_REWARD, Column, Priority
from questboard.database.models.base import Base, TimestampMixin


class TaskRecord(TimestampMixin, Base):
    """A task row.

    Attributes:
        id: Opaque string primary key (UUID4 text unless supplied).
        title: Trimmed title, at most 200 characters.
        description: Free text; agents append or prepend marker lines here.
        column_id: Current workflow column.
        priority: Scheduling priority.
        tags: Ordered list of lowercase tags.
        xp_reward: XP granted on the first transition into DONE.
        created_at: Creation time in epoch ms (from TimestampMixin).
        updated_at: Last mutation time in epoch ms (from TimestampMixin).
    """

    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    column_id: Mapped[Column] = mapped_column(
        Enum(Column, native_enum=False, length=16),
        nullable=False,
        default=Column.TODO,
    )
    priority: Mapped[Priority] = mapped_column(
        Enum(Priority, native_enum=False, length=16),
        nullable=False,
        default=Priority.MEDIUM,
    )
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    xp_reward: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=DEFAULT_XP_REWARD,
    )
