"""Board-level endpoints: score, export, import and reset."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from questboard.board.snapshot import clear_board, export_snapshot, import_snapshot
from questboard.board.state_machine import TaskStateMachine
from questboard.gamification import level_progress
from questboard.logging import get_logger
from questboard.web.dependencies import get_session_factory, get_state_machine, require_token

logger = get_logger(__name__)


def create_board_router() -> APIRouter:
    """Create the board router.

    Routes:
        GET  /api/stats         - Score, level and progress within the level
        GET  /api/board/export  - Versioned snapshot of tasks and score
        POST /api/board/import  - Replace tasks and score from a snapshot
        POST /api/board/clear   - Delete all tasks and reset the score
    """
    router = APIRouter(prefix="/api", tags=["board"])

    @router.get("/stats")
    async def stats_endpoint(
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        machine: TaskStateMachine = Depends(get_state_machine),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            stats = await machine.get_stats(session)
        return {
            "ok": True,
            "stats": stats.model_dump(by_alias=True),
            "progress": level_progress(stats.xp).model_dump(),
        }

    @router.get("/board/export")
    async def export_endpoint(
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            return await export_snapshot(session)

    @router.post("/board/import", dependencies=[Depends(require_token)])
    async def import_endpoint(
        payload: Any = Body(...),
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    ) -> dict[str, Any]:
        """Replace the board. A rejected payload leaves the board untouched."""
        async with session_factory() as session:
            count = await import_snapshot(session, payload)
        return {"ok": True, "imported": count}

    @router.post("/board/clear", dependencies=[Depends(require_token)])
    async def clear_endpoint(
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            count = await clear_board(session)
        return {"ok": True, "deleted": count}

    return router
