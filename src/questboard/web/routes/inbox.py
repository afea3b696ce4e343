"""Inbox endpoint: free text in, task out."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from questboard.board.state_machine import TaskStateMachine
from questboard.errors import ValidationError
from questboard.inbox import parse_task_text
from questboard.logging import get_logger
from questboard.web.dependencies import get_session_factory, get_state_machine, require_token

logger = get_logger(__name__)


class InboxRequest(BaseModel):
    """Request body: ``{"text": "..."}``."""

    text: str = ""


def create_inbox_router() -> APIRouter:
    """Create the inbox router.

    Routes:
        POST /api/inbox - Parse text and create the resulting task
    """
    router = APIRouter(prefix="/api/inbox", tags=["inbox"])

    @router.post("", status_code=201, dependencies=[Depends(require_token)])
    async def inbox_endpoint(
        body: InboxRequest,
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        machine: TaskStateMachine = Depends(get_state_machine),
    ) -> dict[str, Any]:
        if not body.text.strip():
            raise ValidationError("text required")

        seed = parse_task_text(body.text)
        async with session_factory() as session:
            task = await machine.create(session, seed)

        logger.info(
            "inbox_task_created",
            task_id=task.id,
            column=task.column_id.value,
            priority=task.priority.value,
            tags=task.tags,
        )
        parsed = seed.model_dump(by_alias=True, mode="json", exclude={"id"})
        return {"ok": True, "id": task.id, "parsed": parsed}

    return router
