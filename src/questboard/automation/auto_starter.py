"""Auto-starter agent: promotes at most one task per run into DOING.

Selection:
1. Candidates are tasks in BACKLOG or TODO.
2. Tasks assigned to the agent (title starting ``max:`` or tagged
   ``max``/``ai``) take precedence; without any, all candidates compete.
3. Highest priority wins; among equal priorities the newest task wins.

The chosen task is moved to DOING and a one-line marker is appended to
its description, once. Repeated runs never stack markers.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime, timezone

import httpx
import structlog
from pydantic import BaseModel

from questboard.automation.client import BoardClient
from questboard.automation.lock import RunLock
from questboard.automation.runner import RunOutcome, iso_timestamp, run_locked
from questboard.board.schema import Column, Task, TaskPatch
from questboard.config import AutomationConfig

logger = structlog.get_logger(__name__)

AGENT_NAME = "auto-starter"
AUTO_START_MARKER = "[Max] Auto-started"
ASSIGNED_TITLE_RE = re.compile(r"^max\s*:", re.IGNORECASE)
AGENT_TAGS = frozenset({"max", "ai"})
STARTABLE_COLUMNS = frozenset({Column.BACKLOG, Column.TODO})


class AutoStartResult(BaseModel):
    """Outcome of one auto-start pass.

    Attributes:
        started: The task moved to DOING, or None if nothing matched.
        assigned: Whether the pick came from the agent-assigned pool.
    """

    started: Task | None = None
    assigned: bool = False

    @property
    def summary(self) -> str:
        if self.started is None:
            return "No matching tasks to start."
        return f"Started: {self.started.title} ({self.started.id})"


def is_assigned_to_agent(task: Task) -> bool:
    """True if the title starts with ``max:`` or a tag is ``max``/``ai``."""
    if ASSIGNED_TITLE_RE.match(task.title.strip()):
        return True
    return any(tag.lower() in AGENT_TAGS for tag in task.tags)


def _schedule_key(task: Task) -> tuple[int, int]:
    return (task.priority.rank, -task.created_at)


def select_task(tasks: Iterable[Task]) -> tuple[Task | None, bool]:
    """Pick the task to start.

    Returns:
        The chosen task (or None) and whether it came from the
        agent-assigned pool.
    """
    candidates = [t for t in tasks if t.column_id in STARTABLE_COLUMNS]
    assigned = [t for t in candidates if is_assigned_to_agent(t)]
    pool = assigned or candidates
    if not pool:
        return None, False
    return min(pool, key=_schedule_key), bool(assigned)


def with_start_marker(description: str, now: datetime) -> str:
    """Append the auto-start marker unless one is already present."""
    if AUTO_START_MARKER in description:
        return description
    return f"{description}\n\n{AUTO_START_MARKER}: {iso_timestamp(now)}".strip()


async def auto_start(client: BoardClient, now: datetime | None = None) -> AutoStartResult:
    """Run one auto-start pass against the API.

    Args:
        client: Open BoardClient.
        now: Time recorded in the marker (defaults to current UTC time).

    Returns:
        AutoStartResult describing what, if anything, was started.
    """
    now = now or datetime.now(timezone.utc)
    tasks = await client.list_tasks()
    pick, assigned = select_task(tasks)
    if pick is None:
        logger.info("auto_start_nothing_to_do", task_count=len(tasks))
        return AutoStartResult()

    patch = TaskPatch(
        column_id=Column.DOING,
        description=with_start_marker(pick.description, now),
    )
    started = await client.update_task(pick.id, patch)
    logger.info(
        "auto_start_task_started",
        task_id=started.id,
        from_column=pick.column_id.value,
        priority=pick.priority.value,
        assigned=assigned,
    )
    return AutoStartResult(started=started, assigned=assigned)


async def run_auto_starter(
    config: AutomationConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunOutcome[AutoStartResult]:
    """Run the auto-starter under its run lock.

    Args:
        config: Automation configuration (API URL, token, lock settings).
        transport: Optional httpx transport, used by tests.

    Returns:
        RunOutcome with the pass result when the run completed.
    """
    lock = RunLock(AGENT_NAME, config.lock_dir, config.auto_start_lock_seconds)

    async def _job() -> AutoStartResult:
        async with BoardClient.from_config(config, transport=transport) as client:
            return await auto_start(client)

    return await run_locked(lock, _job)
