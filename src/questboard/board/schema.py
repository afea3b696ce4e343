"""Canonical task schema shared by every Questboard boundary.

The API, the HTTP client, the inbox parser, the snapshot importer, the
client cache and the agents all build tasks through these models, so
title truncation, XP clamping and tag cleaning happen in exactly one
place. JSON uses camelCase keys (columnId, xpReward, createdAt, ...);
Python code uses the snake_case field names.
"""

from __future__ import annotations

import enum
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TITLE_MAX_LENGTH = 200
XP_REWARD_MIN = 0
XP_REWARD_MAX = 500
DEFAULT_XP_REWARD = 25


class Column(str, enum.Enum):
    """Workflow states a task can occupy.

    Any column accepts a move from any other column.
    """

    BACKLOG = "BACKLOG"
    TODO = "TODO"
    DOING = "DOING"
    BLOCKED = "BLOCKED"
    DONE = "DONE"


class Priority(str, enum.Enum):
    """Task priority. Scheduling order is URGENT, HIGH, MEDIUM, LOW."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @property
    def rank(self) -> int:
        """Scheduling rank: 0 for URGENT up to 3 for LOW."""
        return PRIORITY_RANK[self]


PRIORITY_RANK: dict[Priority, int] = {
    Priority.URGENT: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


def clean_title(value: Any) -> str:
    """Trim a title and truncate it to TITLE_MAX_LENGTH characters."""
    return str(value).strip()[:TITLE_MAX_LENGTH]


def clamp_xp(value: int) -> int:
    """Clamp an XP reward into [XP_REWARD_MIN, XP_REWARD_MAX]."""
    return max(XP_REWARD_MIN, min(XP_REWARD_MAX, value))


def clean_tags(value: Any) -> list[str]:
    """Normalise tags: lowercase, trimmed, no empties, first occurrence kept.

    Accepts a list of values or a comma-separated string.

    Raises:
        ValueError: If the value is neither.
    """
    if value is None:
        return []
    if isinstance(value, str):
        raw = value.split(",")
    elif isinstance(value, (list, tuple)):
        raw = list(value)
    else:
        raise ValueError("tags must be a list or comma-separated string")
    tags: list[str] = []
    for item in raw:
        tag = str(item).strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def parse_millis(value: Any) -> int:
    """Coerce an epoch-milliseconds timestamp to int.

    Accepts ints, floats and numeric strings. Anything else, including
    booleans and empty values, is rejected rather than read as 0.
    """
    if isinstance(value, bool):
        raise ValueError("timestamp must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value)
        except ValueError as e:
            raise ValueError(f"timestamp must be a number, got {value!r}") from e
    else:
        raise ValueError("timestamp must be a number")
    if not math.isfinite(number):
        raise ValueError("timestamp must be finite")
    return int(number)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )


class TaskSeed(CamelModel):
    """Fields for creating a task. Missing fields take their defaults.

    An empty title is allowed here and rejected by the state machine, so
    the caller gets a ValidationError rather than a schema error.
    """

    id: str | None = None
    title: str
    description: str = ""
    column_id: Column = Column.TODO
    priority: Priority = Priority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    xp_reward: int = DEFAULT_XP_REWARD

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> str:
        return clean_title("" if v is None else v)

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v: Any) -> list[str]:
        return clean_tags(v)

    @field_validator("xp_reward", mode="before")
    @classmethod
    def _xp_default(cls, v: Any) -> Any:
        return DEFAULT_XP_REWARD if v is None else v

    @field_validator("xp_reward")
    @classmethod
    def _xp(cls, v: int) -> int:
        return clamp_xp(v)


class TaskPatch(CamelModel):
    """Partial update. Only fields that are provided and non-null apply."""

    title: str | None = None
    description: str | None = None
    column_id: Column | None = None
    priority: Priority | None = None
    tags: list[str] | None = None
    xp_reward: int | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> str | None:
        return None if v is None else clean_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v: Any) -> str | None:
        return None if v is None else str(v).strip()

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v: Any) -> list[str] | None:
        return None if v is None else clean_tags(v)

    @field_validator("xp_reward")
    @classmethod
    def _xp(cls, v: int | None) -> int | None:
        return None if v is None else clamp_xp(v)

    def changes(self) -> dict[str, Any]:
        """Return the provided, non-null fields keyed by field name."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class Task(CamelModel):
    """A task record exactly as the store holds it."""

    id: str
    title: str
    description: str = ""
    column_id: Column
    priority: Priority = Priority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    xp_reward: int = DEFAULT_XP_REWARD
    created_at: int
    updated_at: int

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> str:
        title = clean_title("" if v is None else v)
        if not title:
            raise ValueError("title must not be empty")
        return title

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v: Any) -> list[str]:
        return clean_tags(v)

    @field_validator("xp_reward")
    @classmethod
    def _xp(cls, v: int) -> int:
        return clamp_xp(v)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _millis(cls, v: Any) -> int:
        # Timestamps may arrive as floats from JSON or SQL epoch extraction
        return parse_millis(v)

    def to_json(self) -> dict[str, Any]:
        """Serialise with camelCase keys and plain string enums."""
        return self.model_dump(by_alias=True, mode="json")


class Stats(CamelModel):
    """Score as exposed to clients, with the derived level."""

    xp: int = 0
    level: int = 1
    streak: int = 0
    last_done_day: str | None = None
