"""FastAPI dependencies shared by the Questboard routes."""

from __future__ import annotations

import hmac

from fastapi import Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from questboard.board.state_machine import TaskStateMachine
from questboard.config import QuestboardConfig
from questboard.errors import BackingStoreUnavailableError, UnauthorizedError
from questboard.logging import get_logger

logger = get_logger(__name__)


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Return the session factory from app state.

    Raises:
        BackingStoreUnavailableError: If the app started without a
            database URL.
    """
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        raise BackingStoreUnavailableError("backing store not configured")
    return factory


def get_state_machine(request: Request) -> TaskStateMachine:
    return request.app.state.state_machine


def require_token(
    request: Request,
    x_questboard_token: str | None = Header(default=None),
    token: str | None = Query(default=None),
) -> None:
    """Check the shared secret on mutating routes.

    The secret may come in the ``X-Questboard-Token`` header or the
    ``token`` query parameter. With no token configured every request is
    accepted.

    Raises:
        UnauthorizedError: If a token is configured and the request's
            token is missing or wrong.
    """
    config: QuestboardConfig = request.app.state.config
    expected = config.auth.token
    if not expected:
        return

    supplied = x_questboard_token or token or ""
    if not hmac.compare_digest(supplied.encode(), expected.encode()):
        logger.warning("auth_rejected", path=request.url.path, token_present=bool(supplied))
        raise UnauthorizedError()
