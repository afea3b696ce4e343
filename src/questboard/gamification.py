"""Scoring engine: levels, streaks and XP awards.

Pure functions with no I/O. The state machine calls apply_completion()
exactly once per XP-awarding transition into DONE; everything else here
is derived from the stored score.

Level curve: level 1 at 0 XP, then one level per 100 XP.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from pydantic import BaseModel, Field, field_validator

XP_PER_LEVEL = 100


class ScoreState(BaseModel):
    """Persisted score values. The level is always derived from xp.

    Attributes:
        xp: Cumulative experience points.
        streak: Consecutive calendar days with at least one completion.
        last_done_day: UTC day (YYYY-MM-DD) of the latest XP-awarding completion.
    """

    xp: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    last_done_day: str | None = None

    @field_validator("last_done_day")
    @classmethod
    def _day(cls, v: str | None) -> str | None:
        if v is None:
            return None
        try:
            return date.fromisoformat(v).isoformat()
        except ValueError as e:
            raise ValueError(f"lastDoneDay must be YYYY-MM-DD, got {v!r}") from e

    @property
    def level(self) -> int:
        return level_for_xp(self.xp)


class LevelProgress(BaseModel):
    """Position of an XP total within its level."""

    level: int
    into: int
    needed: int


def day_key(moment: datetime | None = None) -> str:
    """Return the UTC calendar day of a moment as YYYY-MM-DD."""
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).date().isoformat()


def level_for_xp(xp: int) -> int:
    """Compute the level for an XP total: floor(xp / 100) + 1, minimum 1."""
    return max(1, xp // XP_PER_LEVEL + 1)


def level_progress(xp: int) -> LevelProgress:
    """Return how far an XP total is into its current level."""
    level = level_for_xp(xp)
    base = (level - 1) * XP_PER_LEVEL
    return LevelProgress(level=level, into=xp - base, needed=XP_PER_LEVEL)


def next_streak(streak: int, last_done_day: str | None, today: str) -> int:
    """Streak value after a completion on ``today``.

    Same day leaves the streak unchanged, the following day extends it,
    and anything else (no previous completion, a gap, or a day in the
    future) restarts it at 1.
    """
    if last_done_day is None:
        return 1
    if last_done_day == today:
        return streak
    gap = (date.fromisoformat(today) - date.fromisoformat(last_done_day)).days
    if gap == 1:
        return streak + 1
    return 1


def apply_completion(score: ScoreState, xp_reward: int, now: datetime | None = None) -> ScoreState:
    """Apply one XP-awarding completion to a score.

    Args:
        score: Score before the completion.
        xp_reward: XP granted by the completed task.
        now: Completion time (defaults to the current UTC time).

    Returns:
        A new ScoreState; the input is not modified.
    """
    today = day_key(now)
    return ScoreState(
        xp=score.xp + max(0, xp_reward),
        streak=next_streak(score.streak, score.last_done_day, today),
        last_done_day=today,
    )
