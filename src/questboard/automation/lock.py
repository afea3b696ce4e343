"""Per-agent run lock: a named advisory lock with a TTL.

Each agent run holds ``<lock_dir>/questboard-<name>.lock`` for its
duration. The file is created with O_EXCL and records its creation time
in epoch milliseconds. A second run that finds the file exits unless the
lock is older than the staleness window, in which case the holder is
assumed to have crashed: the file is removed and acquisition retried
once.

The lock is local to one host. Agents are expected to be scheduled on a
single machine.

Example:
    >>> lock = RunLock("stale-sweeper", Path("/tmp"), stale_after_seconds=300)
    >>> with lock.hold() as acquired:
    ...     if acquired:
    ...         run_sweep()
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


class RunLock:
    """File-based mutual exclusion for one agent identity.

    Attributes:
        name: Agent identity the lock is scoped to.
        path: Lock file location.
        stale_after_seconds: Age after which a held lock is treated as abandoned.
    """

    def __init__(
        self,
        name: str,
        lock_dir: Path,
        stale_after_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the run lock.

        Args:
            name: Agent identity, used in the lock file name.
            lock_dir: Directory for the lock file (created if missing).
            stale_after_seconds: Staleness window; must exceed the agent's
                worst-case runtime.
            clock: Returns the current time in seconds since epoch.
        """
        self.name = name
        self.path = Path(lock_dir) / f"questboard-{name}.lock"
        self.stale_after_seconds = stale_after_seconds
        self._clock = clock
        self._held = False
        self._logger = logger.bind(component="RunLock", lock=name)

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> bool:
        """Try to take the lock without waiting.

        Returns:
            True if this process now holds the lock, False if another
            live run holds it.
        """
        if self._try_create():
            return True

        age = self._age_seconds()
        if age is None:
            # Holder released between our attempts
            return self._try_create()

        if age > self.stale_after_seconds:
            self._logger.warning(
                "stale_lock_removed",
                path=str(self.path),
                age_seconds=round(age, 1),
                stale_after_seconds=self.stale_after_seconds,
            )
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
            return self._try_create()

        self._logger.info(
            "lock_busy",
            path=str(self.path),
            age_seconds=round(age, 1),
        )
        return False

    def release(self) -> None:
        """Remove the lock file if this process holds it."""
        if not self._held:
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            self._logger.warning("lock_already_removed", path=str(self.path))
        self._held = False
        self._logger.debug("lock_released", path=str(self.path))

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """Context manager yielding whether the lock was acquired.

        The lock is released on exit only if it was acquired.
        """
        acquired = self.acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()

    def _try_create(self) -> bool:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, "w") as f:
            f.write(str(int(self._clock() * 1000)))
        self._held = True
        self._logger.debug("lock_acquired", path=str(self.path))
        return True

    def _age_seconds(self) -> float | None:
        """Age of the existing lock, from its recorded timestamp or mtime."""
        try:
            content = self.path.read_text().strip()
            mtime = self.path.stat().st_mtime
        except FileNotFoundError:
            return None
        try:
            created = int(content) / 1000
        except ValueError:
            created = mtime
        return self._clock() - created
