"""Stale sweeper agent: finds tasks stuck in DOING.

A task is stale when it sits in DOING, carries none of the exempt tags
(``pinned``, ``wip-ok`` by default, case-insensitive) and has not been
updated for longer than the staleness window (24 hours by default).

In notify mode the sweeper only reports. In demote mode it moves every
stale task back to TODO and prepends a marker line to its description,
once. Demotion is not a DONE transition and never touches the score.
"""

from __future__ import annotations

import enum
import time
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

import httpx
import structlog
from pydantic import BaseModel, Field

from questboard.automation.client import BoardClient
from questboard.automation.lock import RunLock
from questboard.automation.runner import RunOutcome, iso_timestamp, run_locked
from questboard.board.schema import Column, Task, TaskPatch
from questboard.config import AutomationConfig

logger = structlog.get_logger(__name__)

AGENT_NAME = "stale-sweeper"
DEMOTE_MARKER = "[Max] Auto-demoted (stale >24h)"
DEMOTE_MARKER_PREFIX = "[Max] Auto-demoted"
DEFAULT_STALE_AFTER = timedelta(hours=24)
DEFAULT_EXEMPT_TAGS = frozenset({"pinned", "wip-ok"})
SUMMARY_TITLE_LIMIT = 10


class SweepMode(str, enum.Enum):
    """Whether the sweeper only reports or also demotes."""

    notify = "notify"
    demote = "demote"


def summarize_titles(titles: list[str], limit: int = SUMMARY_TITLE_LIMIT) -> str:
    """Join the first ``limit`` titles with `` | `` and mark any overflow."""
    text = " | ".join(titles[:limit])
    if len(titles) > limit:
        text += " | …"
    return text


class SweepResult(BaseModel):
    """Outcome of one sweep.

    Attributes:
        mode: Mode the sweep ran in.
        stale: Tasks found stale.
        demoted: Tasks moved back to TODO (demote mode only).
        duration_ms: Wall time of the sweep.
    """

    mode: SweepMode
    stale: list[Task] = Field(default_factory=list)
    demoted: list[Task] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def affected(self) -> list[Task]:
        return self.demoted if self.mode == SweepMode.demote else self.stale

    def summary_lines(self) -> list[str]:
        """Operator-facing summary: count, then up to 10 titles."""
        titles = [t.title or t.id for t in self.affected]
        prefix = f"{AGENT_NAME}: {self.mode.value}"
        if not titles:
            if self.mode == SweepMode.notify:
                return [f"{prefix}: none stale ({self.duration_ms}ms)"]
            return [f"{AGENT_NAME}: no stale DOING tasks ({self.duration_ms}ms)"]

        verb = "demoted" if self.mode == SweepMode.demote else "stale"
        lines = [
            f"{prefix}: {len(titles)} {verb} DOING task(s) ({self.duration_ms}ms)",
            f"{prefix}: {summarize_titles(titles)}",
        ]
        if self.mode == SweepMode.notify:
            lines.append("Stale DOING (24h+):\n- " + "\n- ".join(titles))
        return lines


def is_stale(
    task: Task,
    now: datetime,
    stale_after: timedelta = DEFAULT_STALE_AFTER,
    exempt_tags: Iterable[str] = DEFAULT_EXEMPT_TAGS,
) -> bool:
    """Staleness predicate for a single task."""
    if task.column_id != Column.DOING:
        return False
    exempt = {tag.lower() for tag in exempt_tags}
    if any(tag.lower() in exempt for tag in task.tags):
        return False
    if not task.updated_at:
        return False
    now_ms = int(now.timestamp() * 1000)
    return now_ms - task.updated_at > stale_after.total_seconds() * 1000


def find_stale(
    tasks: Iterable[Task],
    now: datetime,
    stale_after: timedelta = DEFAULT_STALE_AFTER,
    exempt_tags: Iterable[str] = DEFAULT_EXEMPT_TAGS,
) -> list[Task]:
    """Return the stale tasks in input order."""
    exempt = frozenset(exempt_tags)
    return [t for t in tasks if is_stale(t, now, stale_after, exempt)]


def with_demote_marker(description: str, now: datetime) -> str:
    """Prepend the demotion marker unless one is already present."""
    if DEMOTE_MARKER_PREFIX in description:
        return description
    return f"{DEMOTE_MARKER}: {iso_timestamp(now)}\n\n{description}".strip()


async def sweep(
    client: BoardClient,
    mode: SweepMode = SweepMode.notify,
    now: datetime | None = None,
    stale_after: timedelta = DEFAULT_STALE_AFTER,
    exempt_tags: Iterable[str] = DEFAULT_EXEMPT_TAGS,
) -> SweepResult:
    """Run one sweep against the API.

    Args:
        client: Open BoardClient.
        mode: notify (report only) or demote (move stale tasks to TODO).
        now: Reference time (defaults to current UTC time).
        stale_after: Staleness window.
        exempt_tags: Tags that exempt a task.

    Returns:
        SweepResult with the stale and demoted tasks.
    """
    started = time.perf_counter()
    now = now or datetime.now(timezone.utc)

    tasks = await client.list_tasks()
    stale = find_stale(tasks, now, stale_after, exempt_tags)

    demoted: list[Task] = []
    if mode == SweepMode.demote:
        for task in stale:
            patch = TaskPatch(
                column_id=Column.TODO,
                description=with_demote_marker(task.description, now),
            )
            demoted.append(await client.update_task(task.id, patch))
            logger.info("sweep_task_demoted", task_id=task.id, updated_at=task.updated_at)

    duration_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "sweep_completed",
        mode=mode.value,
        task_count=len(tasks),
        stale_count=len(stale),
        demoted_count=len(demoted),
        duration_ms=duration_ms,
    )
    return SweepResult(mode=mode, stale=stale, demoted=demoted, duration_ms=duration_ms)


async def run_stale_sweeper(
    config: AutomationConfig,
    mode: SweepMode = SweepMode.notify,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunOutcome[SweepResult]:
    """Run the sweeper under its run lock.

    Args:
        config: Automation configuration (API URL, token, lock and staleness settings).
        mode: notify or demote.
        transport: Optional httpx transport, used by tests.

    Returns:
        RunOutcome with the sweep result when the run completed.
    """
    lock = RunLock(AGENT_NAME, config.lock_dir, config.sweep_lock_seconds)

    async def _job() -> SweepResult:
        async with BoardClient.from_config(config, transport=transport) as client:
            return await sweep(
                client,
                mode=mode,
                stale_after=timedelta(hours=config.stale_after_hours),
                exempt_tags=config.exempt_tags,
            )

    return await run_locked(lock, _job)
