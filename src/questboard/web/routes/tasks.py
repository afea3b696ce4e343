"""Task REST API endpoints for Questboard.

All mutations go through the TaskStateMachine, so a column change made by
PATCH or by the move endpoint follows the same DONE scoring rule.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from questboard.board.schema import CamelModel, Column, TaskPatch, TaskSeed
from questboard.board.state_machine import TaskStateMachine
from questboard.logging import get_logger
from questboard.web.dependencies import get_session_factory, get_state_machine, require_token

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 500


class MoveRequest(CamelModel):
    """Request body for a column move: ``{"columnId": "DONE"}``."""

    column_id: Column


def create_tasks_router() -> APIRouter:
    """Create the task router.

    Routes:
        GET    /api/tasks             - List tasks, newest update first
        GET    /api/tasks/{id}        - Get one task
        POST   /api/tasks             - Create (or upsert by id)
        PATCH  /api/tasks/{id}        - Partial update
        POST   /api/tasks/{id}/move   - Move to a column
        DELETE /api/tasks/{id}        - Delete (idempotent)
    """
    router = APIRouter(prefix="/api/tasks", tags=["tasks"])

    @router.get("")
    async def list_tasks_endpoint(
        limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=5000),
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        machine: TaskStateMachine = Depends(get_state_machine),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            tasks = await machine.list_tasks(session, limit=limit)
        logger.debug("tasks_listed", count=len(tasks), limit=limit)
        return {"ok": True, "tasks": [t.to_json() for t in tasks]}

    @router.get("/{task_id}")
    async def get_task_endpoint(
        task_id: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        machine: TaskStateMachine = Depends(get_state_machine),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            task = await machine.get_task(session, task_id)
        return {"ok": True, "task": task.to_json()}

    @router.post("", status_code=201, dependencies=[Depends(require_token)])
    async def create_task_endpoint(
        seed: TaskSeed,
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        machine: TaskStateMachine = Depends(get_state_machine),
    ) -> dict[str, Any]:
        """Create a task. A seed naming an existing id updates that task."""
        async with session_factory() as session:
            task = await machine.create(session, seed)
        return {"ok": True, "id": task.id}

    @router.patch("/{task_id}", dependencies=[Depends(require_token)])
    async def update_task_endpoint(
        task_id: str,
        patch: TaskPatch,
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        machine: TaskStateMachine = Depends(get_state_machine),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            result = await machine.update(session, task_id, patch)
        return {"ok": True, "task": result.task.to_json(), "awardedXp": result.awarded_xp}

    @router.post("/{task_id}/move", dependencies=[Depends(require_token)])
    async def move_task_endpoint(
        task_id: str,
        body: MoveRequest,
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        machine: TaskStateMachine = Depends(get_state_machine),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            result = await machine.move(session, task_id, body.column_id)
        return {"ok": True, "task": result.task.to_json(), "awardedXp": result.awarded_xp}

    @router.delete("/{task_id}", dependencies=[Depends(require_token)])
    async def delete_task_endpoint(
        task_id: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        machine: TaskStateMachine = Depends(get_state_machine),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            deleted = await machine.delete(session, task_id)
        return {"ok": True, "deleted": deleted}

    return router
