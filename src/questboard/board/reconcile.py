"""Client-side reconciliation with the authoritative task store.

Clients keep a local copy of the board and refresh it by polling. Each
refresh merges by id with the server copy winning: every fetched record
overwrites or extends the local map, and ids known only locally survive.
Whole records win, fields are never merged individually.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from questboard.board.schema import Task
from questboard.errors import QuestboardError

logger = structlog.get_logger(__name__)

CACHE_VERSION = 1


def merge_by_id(local: Iterable[Task], remote: Iterable[Task]) -> list[Task]:
    """Merge two task lists by id, preferring the remote record.

    Local order is kept; remote-only tasks are appended in remote order.
    """
    merged: dict[str, Task] = {task.id: task for task in local}
    for task in remote:
        merged[task.id] = task
    return list(merged.values())


class TaskCache:
    """Last known good copy of the board on the client side.

    Attributes:
        path: Optional JSON file the cache is persisted to.
    """

    def __init__(self, tasks: Iterable[Task] = (), path: Path | None = None):
        self.path = path
        self._tasks: list[Task] = list(tasks)

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    async def refresh(self, fetch: Callable[[], Awaitable[list[Task]]]) -> bool:
        """Pull from the store and merge into the cache.

        A failed fetch leaves the cached tasks untouched.

        Args:
            fetch: Coroutine function returning the store's task list.

        Returns:
            True if the cache was refreshed, False if the fetch failed.
        """
        try:
            remote = await fetch()
        except (QuestboardError, httpx.HTTPError) as e:
            logger.warning("cache_refresh_failed", error=str(e), cached=len(self._tasks))
            return False

        before = len(self._tasks)
        self._tasks = merge_by_id(self._tasks, remote)
        logger.info(
            "cache_refreshed",
            fetched=len(remote),
            cached_before=before,
            cached_after=len(self._tasks),
        )
        return True

    @classmethod
    def load(cls, path: Path) -> TaskCache:
        """Load a cache file; a missing or unreadable file yields an empty cache."""
        if not path.exists():
            return cls(path=path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            tasks = [Task.model_validate(item) for item in data.get("tasks", [])]
        except (OSError, ValueError, AttributeError, PydanticValidationError) as e:
            logger.warning("cache_unreadable", path=str(path), error=str(e))
            return cls(path=path)
        return cls(tasks, path=path)

    def save(self) -> None:
        """Write the cache to its file."""
        if self.path is None:
            raise ValueError("cache has no path to save to")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"version": CACHE_VERSION, "tasks": [t.to_json() for t in self._tasks]}
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
