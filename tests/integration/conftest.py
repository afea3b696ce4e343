"""Pytest fixtures for integration tests.

Provides an in-memory SQLite database (aiosqlite), the state machine with
a controllable clock, and the FastAPI app wired to both. ASGITransport
does not run the app's lifespan, so the fixtures set the session factory
on app.state directly.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from questboard.automation.client import BoardClient
from questboard.board.state_machine import TaskStateMachine
from questboard.config import AuthConfig, QuestboardConfig
from questboard.database.connection import ensure_schema, get_session_factory
from questboard.web.app import create_app

BASE_URL = "http://test"


class FakeClock:
    """Settable clock for the state machine."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at the current UTC time."""
    return FakeClock(datetime.now(timezone.utc))


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine shared by every session of one test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await ensure_schema(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return get_session_factory(engine)


@pytest.fixture
def state_machine(clock: FakeClock) -> TaskStateMachine:
    return TaskStateMachine(clock=clock)


@pytest.fixture
def config() -> QuestboardConfig:
    """Default config with authentication disabled."""
    return QuestboardConfig(auth=AuthConfig(token=None))


@pytest.fixture
def app(
    config: QuestboardConfig,
    session_factory: async_sessionmaker[AsyncSession],
    state_machine: TaskStateMachine,
) -> FastAPI:
    """FastAPI app bound to the test database."""
    application = create_app(config, state_machine=state_machine)
    application.state.session_factory = session_factory
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Raw HTTP client for the test app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL) as http:
        yield http


@pytest_asyncio.fixture
async def board_client(app: FastAPI) -> AsyncGenerator[BoardClient, None]:
    """BoardClient talking to the test app in-process."""
    async with BoardClient(BASE_URL, transport=ASGITransport(app=app)) as board:
        yield board
