"""Task state machine for Questboard.

This module applies every task mutation: create, update, move and delete.
Column transitions are permissive (any column may move to any other), so
the machine's job is not to police the workflow but to own the single
side effect that matters: the first transition of a task into DONE awards
its XP and advances the streak.

The award runs inside the same transaction as the move, reading and
writing the score row with a row lock, so a task's XP can never be
counted twice and concurrent completions cannot lose an update.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from questboard.board.schema import Column, Stats, Task, TaskPatch, TaskSeed
from questboard.database.models.task import TaskRecord
from questboard.database.queries.score import get_score_record, record_to_score, store_score
from questboard.database.queries.task import (
    delete_task_record,
    get_task_record,
    insert_task_record,
    list_task_records,
    record_to_task,
)
from questboard.errors import NotFoundError, ValidationError
from questboard.gamification import apply_completion, level_for_xp

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def awards_xp(previous: Column, target: Column) -> bool:
    """Return True if moving from ``previous`` to ``target`` grants XP.

    Only entering DONE from a non-DONE column awards; leaving DONE never
    revokes anything.
    """
    return previous != Column.DONE and target == Column.DONE


class TransitionResult(BaseModel):
    """Outcome of an update or move.

    Attributes:
        task: The task after the mutation.
        previous_column: Column the task occupied before the mutation.
        awarded_xp: XP granted by this mutation (0 unless it entered DONE).
    """

    task: Task
    previous_column: Column
    awarded_xp: int = 0


class TaskStateMachine:
    """Applies task mutations and the DONE-transition scoring rule.

    Every public method opens its own transaction on the given session,
    so callers pass a session that is not already inside one.
    """

    def __init__(self, clock: Clock | None = None):
        """Initialize the task state machine.

        Args:
            clock: Returns the current time. Defaults to UTC wall clock;
                   tests inject fixed times to exercise streak rules.
        """
        self.logger = logger.bind(component="TaskStateMachine")
        self._clock = clock or _utcnow

    def _now(self) -> tuple[datetime, int]:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now, int(now.timestamp() * 1000)

    async def list_tasks(self, session: AsyncSession, limit: int | None = None) -> list[Task]:
        """Return all tasks, most recently updated first."""
        async with session.begin():
            records = await list_task_records(session, limit=limit)
            return [record_to_task(r) for r in records]

    async def get_task(self, session: AsyncSession, task_id: str) -> Task:
        """Return one task.

        Raises:
            NotFoundError: If the id does not resolve.
        """
        async with session.begin():
            record = await get_task_record(session, task_id)
            if record is None:
                raise NotFoundError(task_id)
            return record_to_task(record)

    async def create(self, session: AsyncSession, seed: TaskSeed) -> Task:
        """Create a task from a seed.

        Assigns a UUID when the seed has no id and stamps created/updated
        times. When the seed names an id that already exists, the call
        updates that task instead, routing any column change through the
        DONE rule. Creating straight into DONE awards nothing.

        Args:
            session: Database session (not inside a transaction).
            seed: Normalised task fields.

        Returns:
            The stored task.

        Raises:
            ValidationError: If the title is empty after trimming.
        """
        if not seed.title:
            raise ValidationError("title required")

        now, now_ms = self._now()
        async with session.begin():
            if seed.id:
                existing = await get_task_record(session, seed.id, for_update=True)
                if existing is not None:
                    changes = seed.model_dump(exclude={"id"})
                    result = await self._apply(session, existing, changes, now, now_ms)
                    self.logger.info(
                        "task_upserted",
                        task_id=existing.id,
                        awarded_xp=result.awarded_xp,
                    )
                    return result.task

            record = await insert_task_record(
                session,
                id=seed.id or str(uuid.uuid4()),
                title=seed.title,
                description=seed.description,
                column_id=seed.column_id,
                priority=seed.priority,
                tags=list(seed.tags),
                xp_reward=seed.xp_reward,
                created_at=now_ms,
                updated_at=now_ms,
            )
            task = record_to_task(record)

        self.logger.info(
            "task_created",
            task_id=task.id,
            column=task.column_id.value,
            priority=task.priority.value,
            xp_reward=task.xp_reward,
        )
        return task

    async def update(
        self,
        session: AsyncSession,
        task_id: str,
        patch: TaskPatch,
    ) -> TransitionResult:
        """Apply the provided fields of a patch to a task.

        Always refreshes updated_at, even for an empty patch. A column
        change goes through the same DONE rule as move().

        Raises:
            NotFoundError: If the id does not resolve.
            ValidationError: If the patch sets an empty title.
        """
        changes = patch.changes()
        if "title" in changes and not changes["title"]:
            raise ValidationError("title must not be empty")

        now, now_ms = self._now()
        async with session.begin():
            record = await get_task_record(session, task_id, for_update=True)
            if record is None:
                raise NotFoundError(task_id)
            result = await self._apply(session, record, changes, now, now_ms)

        self.logger.info(
            "task_updated",
            task_id=task_id,
            fields=sorted(changes),
            awarded_xp=result.awarded_xp,
        )
        return result

    async def move(
        self,
        session: AsyncSession,
        task_id: str,
        target: Column,
    ) -> TransitionResult:
        """Move a task to another column.

        If the task was not in DONE and the target is DONE, the task's XP
        reward is added to the score and the streak advanced before this
        method returns. No other transition has side effects.

        Raises:
            NotFoundError: If the id does not resolve.
        """
        now, now_ms = self._now()
        async with session.begin():
            record = await get_task_record(session, task_id, for_update=True)
            if record is None:
                raise NotFoundError(task_id)
            result = await self._apply(session, record, {"column_id": target}, now, now_ms)

        self.logger.info(
            "task_transition",
            task_id=task_id,
            from_column=result.previous_column.value,
            to_column=target.value,
            awarded_xp=result.awarded_xp,
        )
        return result

    async def delete(self, session: AsyncSession, task_id: str) -> bool:
        """Delete a task. Unknown ids are not an error.

        Returns:
            True if a task was removed.
        """
        async with session.begin():
            deleted = await delete_task_record(session, task_id)
        self.logger.info("task_deleted", task_id=task_id, deleted=deleted)
        return deleted

    async def get_stats(self, session: AsyncSession) -> Stats:
        """Return the current score with its derived level."""
        async with session.begin():
            score = record_to_score(await get_score_record(session))
        return Stats(
            xp=score.xp,
            level=level_for_xp(score.xp),
            streak=score.streak,
            last_done_day=score.last_done_day,
        )

    async def _apply(
        self,
        session: AsyncSession,
        record: TaskRecord,
        changes: dict[str, Any],
        now: datetime,
        now_ms: int,
    ) -> TransitionResult:
        previous = record.column_id
        for field, value in changes.items():
            if field != "column_id":
                setattr(record, field, list(value) if field == "tags" else value)

        awarded = 0
        target = changes.get("column_id")
        if target is not None:
            record.column_id = target
            if awards_xp(previous, target):
                awarded = await self._award(session, record, now)

        record.updated_at = now_ms
        await session.flush()
        return TransitionResult(
            task=record_to_task(record),
            previous_column=previous,
            awarded_xp=awarded,
        )

    async def _award(self, session: AsyncSession, record: TaskRecord, now: datetime) -> int:
        score_record = await get_score_record(session, for_update=True)
        before = record_to_score(score_record)
        after = apply_completion(before, record.xp_reward, now)
        await store_score(session, after)

        self.logger.info(
            "xp_awarded",
            task_id=record.id,
            xp_reward=record.xp_reward,
            xp=after.xp,
            level=after.level,
            streak=after.streak,
            level_up=after.level > before.level,
        )
        return after.xp - before.xp
