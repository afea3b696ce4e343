"""FastAPI route definitions for the Questboard API."""

from __future__ import annotations

from questboard.web.routes.board import create_board_router
from questboard.web.routes.health import (
    HealthResponse,
    ReadinessResponse,
    create_health_router,
)
from questboard.web.routes.inbox import InboxRequest, create_inbox_router
from questboard.web.routes.tasks import MoveRequest, create_tasks_router

__all__ = [
    # Board
    "create_board_router",
    # Health
    "HealthResponse",
    "ReadinessResponse",
    "create_health_router",
    # Inbox
    "InboxRequest",
    "create_inbox_router",
    # Tasks
    "MoveRequest",
    "create_tasks_router",
]
