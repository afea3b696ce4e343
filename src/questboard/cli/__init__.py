"""CLI sub-command modules for Questboard.

Commands reach the board through the HTTP API. ``call_api`` runs one
client operation and turns API failures into a red message and exit
code 1.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
import typer
from rich.console import Console

from questboard.automation.client import BoardClient
from questboard.errors import QuestboardError

T = TypeVar("T")

console = Console()


def call_api(operation: Callable[[BoardClient], Awaitable[T]]) -> T:
    """Run ``operation`` with an open BoardClient and return its result.

    Raises:
        typer.Exit: With code 1 if the API answered with an error or
            could not be reached.
    """
    from questboard.main import get_app_context

    ctx = get_app_context()

    async def _run() -> T:
        async with ctx.client() as client:
            return await operation(client)

    try:
        return asyncio.run(_run())
    except QuestboardError as e:
        console.print(f"[red]Error ({e.status_code}):[/red] {e.message}")
        raise typer.Exit(code=1)
    except httpx.HTTPError as e:
        console.print(f"[red]API unreachable:[/red] {e}")
        raise typer.Exit(code=1)
