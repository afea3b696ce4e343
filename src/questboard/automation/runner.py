"""Shared run harness for the automation agents.

An agent run takes its run lock, executes one pass against the API and
releases the lock. A missing or unprovisioned backing store (HTTP 500
from the API) ends the run quietly; any other error propagates so the
scheduler sees a failed run. There are no retries inside a run: the next
scheduled invocation is the retry.
"""

from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Generic, TypeVar

import structlog
from pydantic import BaseModel

from questboard.automation.lock import RunLock
from questboard.errors import BackingStoreUnavailableError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RunStatus(str, enum.Enum):
    """How an agent run ended."""

    completed = "completed"
    locked = "locked"
    store_unavailable = "store_unavailable"


class RunOutcome(BaseModel, Generic[T]):
    """Status of a run plus the agent's result when it completed."""

    status: RunStatus
    result: T | None = None


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 timestamp with milliseconds and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


async def run_locked(lock: RunLock, job: Callable[[], Awaitable[T]]) -> RunOutcome[T]:
    """Run ``job`` while holding ``lock``.

    Args:
        lock: The agent's run lock.
        job: Coroutine function performing one agent pass.

    Returns:
        RunOutcome with status ``locked`` if another run holds the lock,
        ``store_unavailable`` if the store is not reachable through the
        API, otherwise ``completed`` with the job's result.
    """
    with lock.hold() as acquired:
        if not acquired:
            logger.info("run_skipped_lock_held", lock=lock.name)
            return RunOutcome(status=RunStatus.locked)
        try:
            result = await job()
        except BackingStoreUnavailableError as e:
            logger.info("run_noop_store_unavailable", lock=lock.name, error=str(e))
            return RunOutcome(status=RunStatus.store_unavailable)
    return RunOutcome(status=RunStatus.completed, result=result)
