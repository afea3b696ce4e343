"""Score query functions for Questboard.

The score is a single row created lazily at zero. Reads and writes run
inside the caller's transaction.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from questboard.database.models.score import SCORE_ROW_ID, ScoreRecord
from questboard.gamification import ScoreState


async def get_score_record(
    session: AsyncSession,
    for_update: bool = False,
) -> ScoreRecord:
    """Return the score row, creating it at zero if missing.

    Args:
        session: Active async database session.
        for_update: Lock the row for a read-modify-write (no-op on SQLite).

    Returns:
        The ScoreRecord singleton.
    """
    stmt = select(ScoreRecord).where(ScoreRecord.id == SCORE_ROW_ID)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    record = result.scalar_one_or_none()
    if record is None:
        record = ScoreRecord(id=SCORE_ROW_ID, xp=0, streak=0, last_done_day=None)
        session.add(record)
        await session.flush()
    return record


def record_to_score(record: ScoreRecord) -> ScoreState:
    """Convert the score row into a ScoreState."""
    return ScoreState(
        xp=record.xp,
        streak=record.streak,
        last_done_day=record.last_done_day,
    )


async def store_score(session: AsyncSession, score: ScoreState) -> ScoreRecord:
    """Overwrite the score row with the given values.

    Returns:
        The updated ScoreRecord.
    """
    record = await get_score_record(session, for_update=True)
    record.xp = score.xp
    record.streak = score.streak
    record.last_done_day = score.last_done_day
    await session.flush()
    return record
