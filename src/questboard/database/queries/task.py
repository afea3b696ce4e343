"""Task query functions for Questboard.

Low-level async functions over the tasks table. They run inside the
caller's transaction and only flush; committing is the caller's job, so
the state machine can combine a task write and a score update in one
transaction.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from questboard.board.schema import Task
from questboard.database.models.task import TaskRecord

logger = structlog.get_logger(__name__)


def record_to_task(record: TaskRecord) -> Task:
    """Convert an ORM row into the canonical Task model."""
    return Task(
        id=record.id,
        title=record.title,
        description=record.description,
        column_id=record.column_id,
        priority=record.priority,
        tags=list(record.tags or []),
        xp_reward=record.xp_reward,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


async def get_task_record(
    session: AsyncSession,
    task_id: str,
    for_update: bool = False,
) -> TaskRecord | None:
    """Retrieve a task row by id.

    Args:
        session: Active async database session.
        task_id: Id of the task to retrieve.
        for_update: Lock the row for the rest of the transaction
                    (no-op on SQLite).

    Returns:
        The TaskRecord if found, None otherwise.
    """
    stmt = select(TaskRecord).where(TaskRecord.id == task_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_task_records(
    session: AsyncSession,
    limit: int | None = None,
) -> list[TaskRecord]:
    """List task rows, most recently updated first.

    Args:
        session: Active async database session.
        limit: Optional maximum number of rows.

    Returns:
        List of TaskRecord instances.
    """
    stmt = select(TaskRecord).order_by(TaskRecord.updated_at.desc(), TaskRecord.id)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def insert_task_record(session: AsyncSession, **fields: Any) -> TaskRecord:
    """Add a new task row and flush it.

    Args:
        session: Active async database session.
        **fields: Column values for the new row.

    Returns:
        The flushed TaskRecord.
    """
    record = TaskRecord(**fields)
    session.add(record)
    await session.flush()
    return record


async def delete_task_record(session: AsyncSession, task_id: str) -> bool:
    """Delete a task row if it exists.

    Returns:
        True if a row was removed, False if the id was unknown.
    """
    result = await session.execute(delete(TaskRecord).where(TaskRecord.id == task_id))
    return bool(result.rowcount)  # type: ignore[union-attr]


async def delete_all_task_records(session: AsyncSession) -> int:
    """Delete every task row.

    Returns:
        Number of rows removed.
    """
    result = await session.execute(delete(TaskRecord))
    count = result.rowcount or 0  # type: ignore[union-attr]
    logger.info("tasks_deleted_all", count=count)
    return count
