"""Board export, import and reset.

A snapshot is ``{"version": 1, "tasks": [...], "stats": {...}}``. Import
validates the whole payload before touching the database and then
replaces tasks and score in a single transaction, so a rejected or failed
import leaves the previous board exactly as it was.

Tasks and score are stored independently. Import and clear always replace
or reset both together; nothing else reconciles them if they drift.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from questboard.board.schema import Stats, Task
from questboard.database.queries.score import get_score_record, record_to_score, store_score
from questboard.database.queries.task import (
    delete_all_task_records,
    insert_task_record,
    list_task_records,
    record_to_task,
)
from questboard.errors import InvalidFormatError
from questboard.gamification import ScoreState, level_for_xp

logger = structlog.get_logger(__name__)

SNAPSHOT_VERSION = 1


def parse_snapshot(payload: Any) -> tuple[list[Task], ScoreState]:
    """Validate a snapshot payload.

    Args:
        payload: Decoded JSON snapshot.

    Returns:
        The tasks and the score to install. ``stats.level`` is ignored;
        the level is always derived from xp.

    Raises:
        InvalidFormatError: If the version is not exactly 1, ``tasks`` is
            not a list, any task record is invalid, ids repeat, or the
            stats block is malformed.
    """
    if not isinstance(payload, dict):
        raise InvalidFormatError("snapshot must be a JSON object")

    version = payload.get("version")
    if isinstance(version, bool) or version != SNAPSHOT_VERSION:
        raise InvalidFormatError(f"unsupported snapshot version: {version!r}")

    raw_tasks = payload.get("tasks")
    if not isinstance(raw_tasks, list):
        raise InvalidFormatError("snapshot tasks must be a list")

    tasks: list[Task] = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_tasks):
        try:
            task = Task.model_validate(raw)
        except PydanticValidationError as e:
            raise InvalidFormatError(f"invalid task at index {index}: {e}") from e
        if task.id in seen:
            raise InvalidFormatError(f"duplicate task id: {task.id}")
        seen.add(task.id)
        tasks.append(task)

    raw_stats = payload.get("stats") or {}
    if not isinstance(raw_stats, dict):
        raise InvalidFormatError("snapshot stats must be an object")
    try:
        score = ScoreState(
            xp=int(raw_stats.get("xp") or 0),
            streak=int(raw_stats.get("streak") or 0),
            last_done_day=raw_stats.get("lastDoneDay", raw_stats.get("last_done_day")),
        )
    except (TypeError, ValueError) as e:
        raise InvalidFormatError(f"invalid stats: {e}") from e

    return tasks, score


async def export_snapshot(session: AsyncSession) -> dict[str, Any]:
    """Build a versioned snapshot of all tasks and the score."""
    async with session.begin():
        records = await list_task_records(session)
        score = record_to_score(await get_score_record(session))

    stats = Stats(
        xp=score.xp,
        level=level_for_xp(score.xp),
        streak=score.streak,
        last_done_day=score.last_done_day,
    )
    logger.info("board_exported", task_count=len(records))
    return {
        "version": SNAPSHOT_VERSION,
        "tasks": [record_to_task(r).to_json() for r in records],
        "stats": stats.model_dump(by_alias=True),
    }


async def import_snapshot(session: AsyncSession, payload: Any) -> int:
    """Replace every task and the score with the snapshot's contents.

    Returns:
        Number of tasks imported.

    Raises:
        InvalidFormatError: If the payload fails validation. Nothing is
            written in that case.
    """
    tasks, score = parse_snapshot(payload)

    async with session.begin():
        await delete_all_task_records(session)
        for task in tasks:
            await insert_task_record(
                session,
                id=task.id,
                title=task.title,
                description=task.description,
                column_id=task.column_id,
                priority=task.priority,
                tags=list(task.tags),
                xp_reward=task.xp_reward,
                created_at=task.created_at,
                updated_at=task.updated_at,
            )
        await store_score(session, score)

    logger.info("board_imported", task_count=len(tasks), xp=score.xp)
    return len(tasks)


async def clear_board(session: AsyncSession) -> int:
    """Delete all tasks and reset the score to zero.

    Returns:
        Number of tasks deleted.
    """
    async with session.begin():
        count = await delete_all_task_records(session)
        await store_score(session, ScoreState())

    logger.info("board_cleared", task_count=count)
    return count
