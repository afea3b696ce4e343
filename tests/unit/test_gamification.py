"""Unit tests for levels, streaks and XP awards."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from questboard.gamification import (
    ScoreState,
    apply_completion,
    day_key,
    level_for_xp,
    level_progress,
    next_streak,
)


class TestLevels:
    """Test the level curve."""

    @pytest.mark.parametrize(
        ("xp", "level"),
        [(0, 1), (99, 1), (100, 2), (250, 3), (1000, 11)],
    )
    def test_level_for_xp(self, xp: int, level: int) -> None:
        """Test that the level is floor(xp / 100) + 1."""
        assert level_for_xp(xp) == level

    def test_negative_xp_stays_at_level_one(self) -> None:
        """Test that the level never drops below 1."""
        assert level_for_xp(-50) == 1

    def test_level_progress(self) -> None:
        """Test progress within the current level."""
        progress = level_progress(250)
        assert progress.level == 3
        assert progress.into == 50
        assert progress.needed == 100

    def test_score_state_level_is_derived(self) -> None:
        """Test that ScoreState exposes the derived level."""
        assert ScoreState(xp=199).level == 2

    @pytest.mark.parametrize("day", ["yesterday", "2026-13-01", ""])
    def test_last_done_day_must_be_a_date(self, day: str) -> None:
        """Test that a malformed completion day is refused up front."""
        with pytest.raises(ValidationError):
            ScoreState(last_done_day=day)

    def test_last_done_day_normalised(self) -> None:
        """Test that a compact ISO day is stored in YYYY-MM-DD form."""
        assert ScoreState(last_done_day="20261018").last_done_day == "2026-10-18"


class TestStreak:
    """Test streak advancement across calendar days."""

    def test_first_completion_starts_streak(self) -> None:
        """Test that the first completion gives a streak of 1."""
        assert next_streak(0, None, "2026-10-19") == 1

    def test_same_day_leaves_streak_unchanged(self) -> None:
        """Test that a second completion on the same day does not extend."""
        assert next_streak(4, "2026-10-19", "2026-10-19") == 4

    def test_next_day_extends_streak(self) -> None:
        """Test that a completion on the following day adds one."""
        assert next_streak(4, "2026-10-19", "2026-10-20") == 5

    def test_month_boundary_counts_as_next_day(self) -> None:
        """Test that consecutive days across a month boundary extend."""
        assert next_streak(2, "2026-10-31", "2026-11-01") == 3

    def test_gap_resets_streak(self) -> None:
        """Test that skipping days restarts the streak at 1."""
        assert next_streak(7, "2026-10-16", "2026-10-19") == 1

    def test_clock_going_backwards_resets_streak(self) -> None:
        """Test that a completion dated before the last one restarts at 1."""
        assert next_streak(3, "2026-10-20", "2026-10-19") == 1


class TestDayKey:
    """Test UTC day keys."""

    def test_uses_utc_date(self) -> None:
        """Test that an aware timestamp is converted to its UTC day."""
        moment = datetime(2026, 10, 19, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert day_key(moment) == "2026-10-20"

    def test_naive_timestamp_treated_as_utc(self) -> None:
        """Test that naive timestamps are interpreted as UTC."""
        assert day_key(datetime(2026, 10, 19, 12, 0)) == "2026-10-19"


class TestApplyCompletion:
    """Test applying one completion to a score."""

    def test_adds_reward_and_sets_day(self) -> None:
        """Test that xp grows by the reward and the day is recorded."""
        now = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
        after = apply_completion(ScoreState(xp=90), 25, now)

        assert after.xp == 115
        assert after.level == 2
        assert after.streak == 1
        assert after.last_done_day == "2026-10-19"

    def test_does_not_mutate_input(self) -> None:
        """Test that the original score object is left alone."""
        before = ScoreState(xp=10, streak=2, last_done_day="2026-10-18")
        apply_completion(before, 50, datetime(2026, 10, 19, tzinfo=timezone.utc))

        assert before.xp == 10
        assert before.streak == 2

    def test_streak_across_days(self) -> None:
        """Test the D, D, D+1, D+3 sequence."""
        day = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
        score = apply_completion(ScoreState(), 10, day)
        assert score.streak == 1
        score = apply_completion(score, 10, day + timedelta(hours=5))
        assert score.streak == 1
        score = apply_completion(score, 10, day + timedelta(days=1))
        assert score.streak == 2
        score = apply_completion(score, 10, day + timedelta(days=4))
        assert score.streak == 1
        assert score.xp == 40
