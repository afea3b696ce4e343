"""Unattended agents and the HTTP client they share.

Both agents reach the store only through the task API, each guarded by
its own run lock so overlapping schedules never run the same agent twice.
"""

from __future__ import annotations

from questboard.automation.auto_starter import AutoStartResult, auto_start, run_auto_starter
from questboard.automation.client import TOKEN_HEADER, BoardClient
from questboard.automation.lock import RunLock
from questboard.automation.runner import RunOutcome, RunStatus, run_locked
from questboard.automation.stale_sweeper import SweepMode, SweepResult, run_stale_sweeper, sweep

__all__ = [
    # Client
    "BoardClient",
    "TOKEN_HEADER",
    # Run harness
    "RunLock",
    "RunOutcome",
    "RunStatus",
    "run_locked",
    # Auto-starter
    "AutoStartResult",
    "auto_start",
    "run_auto_starter",
    # Stale sweeper
    "SweepMode",
    "SweepResult",
    "run_stale_sweeper",
    "sweep",
]
