"""Status key/value model for Questboard.

Holds current-value reports (e.g. agent health) that dashboards read
back. Each key keeps only its latest payload.
"""

from __future__ import annotations

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from questboard.database.models.base import Base, TimestampMixin


class StatusEntry(TimestampMixin, Base):
    """A single overwritable status slot.

    Attributes:
        key: Slot name, e.g. "agent_health".
        payload: JSON-encoded report body.
    """

    __tablename__ = "status_kv"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
