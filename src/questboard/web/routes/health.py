"""Health endpoints for Questboard.

Two kinds of health live here:
- Service probes: liveness (/health/) and readiness with a database
  check (/health/ready).
- The agent health slot (/api/health): a single status_kv entry the
  agents overwrite with their latest report and dashboards read back.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from questboard.database.queries.status import get_status, put_status
from questboard.errors import ValidationError
from questboard.logging import get_logger
from questboard.web.dependencies import get_session_factory, require_token

logger = get_logger(__name__)

AGENT_HEALTH_KEY = "agent_health"


class HealthResponse(BaseModel):
    """Liveness response.

    Attributes:
        status: "ok" while the process serves requests.
    """

    status: str


class ReadinessResponse(BaseModel):
    """Readiness response.

    Attributes:
        status: "ok" or "unhealthy".
        database: "connected", "disconnected" or "not_configured".
    """

    status: str
    database: str


def create_health_router() -> APIRouter:
    """Create the health router.

    Routes:
        GET  /health/       - Liveness check
        GET  /health/ready  - Readiness check with database verification
        GET  /api/health    - Read the agent health slot
        POST /api/health    - Overwrite the agent health slot
    """
    router = APIRouter(tags=["health"])

    @router.get("/health/", response_model=HealthResponse)
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    @router.get("/health/ready", response_model=ReadinessResponse)
    async def readiness(request: Request) -> dict[str, Any]:
        """Readiness check: the database must be configured and answer SELECT 1."""
        session_factory = getattr(request.app.state, "session_factory", None)
        if session_factory is None:
            return {"status": "unhealthy", "database": "not_configured"}

        try:
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("readiness_check_failed", database="disconnected", error=str(exc))
            return {"status": "unhealthy", "database": "disconnected"}

        logger.debug("readiness_check_passed", database="connected")
        return {"status": "ok", "database": "connected"}

    @router.get("/api/health")
    async def read_agent_health(
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    ) -> dict[str, Any]:
        async with session_factory() as session, session.begin():
            health = await get_status(session, AGENT_HEALTH_KEY)
        return {"ok": True, "health": health}

    @router.post("/api/health", dependencies=[Depends(require_token)])
    async def write_agent_health(
        payload: Any = Body(...),
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    ) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise ValidationError("health report must be a JSON object")

        async with session_factory() as session, session.begin():
            await put_status(session, AGENT_HEALTH_KEY, payload)

        logger.info("agent_health_reported", keys=sorted(payload))
        return {"ok": True}

    return router
