"""Agent CLI commands, meant to be run by cron or a systemd timer.

Each command performs one locked pass. Exit status is 0 when the pass
completed, when another run held the lock, or when the backing store is
not available; any other failure exits 1.
"""

from __future__ import annotations

import asyncio
from typing import Annotated, NoReturn

import httpx
import typer
from rich.markup import escape

from questboard.automation import auto_starter, stale_sweeper
from questboard.automation.runner import RunStatus
from questboard.automation.stale_sweeper import SweepMode
from questboard.cli import console
from questboard.errors import QuestboardError
from questboard.logging import bind_agent_context, get_logger

app = typer.Typer(help="Unattended agents")

logger = get_logger(__name__)


def _fail(agent: str, error: Exception) -> NoReturn:
    logger.error("agent_run_failed", agent=agent, error=str(error), error_type=type(error).__name__)
    console.print(f"[red]{agent} failed:[/red] {escape(str(error))}")
    raise typer.Exit(code=1)


@app.command("auto-start")
def auto_start() -> None:
    """Move the best BACKLOG/TODO task into DOING."""
    from questboard.main import get_app_context

    ctx = get_app_context()
    bind_agent_context(agent=auto_starter.AGENT_NAME)

    try:
        outcome = asyncio.run(
            auto_starter.run_auto_starter(ctx.config.automation, transport=ctx.transport)
        )
    except (QuestboardError, httpx.HTTPError) as e:
        _fail(auto_starter.AGENT_NAME, e)

    if outcome.status != RunStatus.completed or outcome.result is None:
        return
    console.print(escape(outcome.result.summary))


@app.command()
def sweep(
    demote: Annotated[
        bool,
        typer.Option("--demote", help="Move stale tasks back to TODO instead of only reporting"),
    ] = False,
) -> None:
    """Report, or demote, tasks stuck in DOING."""
    from questboard.main import get_app_context

    ctx = get_app_context()
    mode = SweepMode.demote if demote else SweepMode.notify
    bind_agent_context(agent=stale_sweeper.AGENT_NAME, mode=mode.value)

    try:
        outcome = asyncio.run(
            stale_sweeper.run_stale_sweeper(ctx.config.automation, mode, transport=ctx.transport)
        )
    except (QuestboardError, httpx.HTTPError) as e:
        _fail(stale_sweeper.AGENT_NAME, e)

    if outcome.status != RunStatus.completed or outcome.result is None:
        return
    for line in outcome.result.summary_lines():
        console.print(escape(line))
