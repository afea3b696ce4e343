"""FastAPI application factory for Questboard.

This module provides the application factory that creates and configures
the task API with:
- CORS middleware for the browser UI
- Request logging middleware with correlation IDs
- Database lifecycle management (engine, schema creation, sessions)
- One error handler turning Questboard errors into ``{"ok": false, "error"}``

Example usage:
    >>> from questboard.config import QuestboardConfig
    >>> from questboard.web.app import create_app
    >>>
    >>> app = create_app(QuestboardConfig())
    >>>
    >>> import uvicorn
    >>> uvicorn.run(app, host="127.0.0.1", port=8000)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from questboard import __version__
from questboard.board.state_machine import TaskStateMachine
from questboard.config import QuestboardConfig
from questboard.database.connection import ensure_schema, get_engine, get_session_factory
from questboard.errors import QuestboardError
from questboard.logging import get_logger
from questboard.web.middleware import RequestLoggingMiddleware
from questboard.web.routes.board import create_board_router
from questboard.web.routes.health import create_health_router
from questboard.web.routes.inbox import create_inbox_router
from questboard.web.routes.tasks import create_tasks_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage the database engine for the app's lifetime.

    With a database URL configured, the engine is created, missing tables
    are created and a session factory is stored on app.state. Without one
    the app still starts; every store route then answers 500.

    Args:
        app: FastAPI application instance

    Yields:
        None after startup, cleans up on context exit
    """
    config: QuestboardConfig = app.state.config
    logger.info("app_startup_begin", host=config.web.host, port=config.web.port)

    engine = None
    if config.database.url:
        engine = get_engine(config.database)
        await ensure_schema(engine)
        app.state.engine = engine
        app.state.session_factory = get_session_factory(engine)
        logger.info("database_ready", dialect=engine.dialect.name)
    else:
        logger.warning("backing_store_not_configured")

    yield

    logger.info("app_shutdown_begin")
    if engine is not None:
        await engine.dispose()
        logger.info("database_pool_disposed")


async def questboard_error_handler(request: Request, exc: QuestboardError) -> JSONResponse:
    """Render a QuestboardError as ``{"ok": false, "error": message}``."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "request_error",
        path=request.url.path,
        status_code=exc.status_code,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.message})


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Report a database failure as a backing store outage."""
    logger.error("database_error", path=request.url.path, error=str(exc), exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": "backing store unavailable"},
    )


def create_app(
    config: QuestboardConfig | None = None,
    state_machine: TaskStateMachine | None = None,
) -> FastAPI:
    """Create and configure the Questboard API application.

    Args:
        config: Optional QuestboardConfig. If None, creates default config.
        state_machine: Optional TaskStateMachine, e.g. one with a fixed
            clock for tests.

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = QuestboardConfig()

    app = FastAPI(
        title="Questboard",
        version=__version__,
        description="Single-user Kanban board with XP, levels and streaks",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.state_machine = state_machine or TaskStateMachine()
    app.state.session_factory = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(QuestboardError, questboard_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    app.include_router(create_health_router())
    app.include_router(create_tasks_router())
    app.include_router(create_inbox_router())
    app.include_router(create_board_router())

    logger.info(
        "app_created",
        cors_origins=config.web.cors_origins,
        auth_enabled=bool(config.auth.token),
        version=__version__,
    )
    return app
