"""Task management CLI commands."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from questboard.automation.client import BoardClient
from questboard.board.reconcile import TaskCache
from questboard.board.schema import DEFAULT_XP_REWARD, Column, Priority, Stats, Task, TaskSeed
from questboard.cli import call_api, console

app = typer.Typer(help="Task management commands")

DEFAULT_CACHE_PATH = Path.home() / ".cache" / "questboard" / "tasks.json"

COLUMN_STYLES = {
    Column.BACKLOG: "dim",
    Column.TODO: "white",
    Column.DOING: "cyan",
    Column.BLOCKED: "red",
    Column.DONE: "green",
}


def _task_table(tasks: list[Task], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title")
    table.add_column("Column")
    table.add_column("Priority")
    table.add_column("Tags")
    table.add_column("XP", justify="right")

    for task in tasks:
        style = COLUMN_STYLES.get(task.column_id, "white")
        table.add_row(
            task.id[:8],
            escape(task.title),
            f"[{style}]{task.column_id.value}[/{style}]",
            task.priority.value,
            escape(", ".join(task.tags)),
            str(task.xp_reward),
        )
    return table


@app.command("list")
def list_tasks(
    column: Annotated[
        Optional[Column],
        typer.Option("--column", "-c", help="Only show tasks in this column"),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List tasks, most recently updated first."""
    tasks = call_api(lambda client: client.list_tasks())
    if column is not None:
        tasks = [t for t in tasks if t.column_id == column]

    if format == "json":
        console.print_json(json.dumps([t.to_json() for t in tasks]))
        return

    if not tasks:
        console.print("[yellow]No tasks found[/yellow]")
        return
    console.print(_task_table(tasks, f"Tasks ({len(tasks)})"))


@app.command()
def add(
    title: Annotated[str, typer.Argument(help="Task title")],
    description: Annotated[
        str,
        typer.Option("--description", "-d", help="Task description"),
    ] = "",
    column: Annotated[
        Column,
        typer.Option("--column", "-c", help="Starting column"),
    ] = Column.TODO,
    priority: Annotated[
        Priority,
        typer.Option("--priority", "-p", help="Task priority"),
    ] = Priority.MEDIUM,
    tags: Annotated[
        Optional[list[str]],
        typer.Option("--tag", "-t", help="Tag (repeatable)"),
    ] = None,
    xp: Annotated[
        int,
        typer.Option("--xp", help="XP reward (clamped to 0..500)"),
    ] = DEFAULT_XP_REWARD,
) -> None:
    """Create a task."""
    seed = TaskSeed(
        title=title,
        description=description,
        column_id=column,
        priority=priority,
        tags=tags or [],
        xp_reward=xp,
    )
    task_id = call_api(lambda client: client.create_task(seed))

    console.print(
        Panel(
            f"[green]Task created[/green]\n\n"
            f"[bold]ID:[/bold] {task_id}\n"
            f"[bold]Title:[/bold] {escape(seed.title)}\n"
            f"[bold]Column:[/bold] {seed.column_id.value}\n"
            f"[bold]Priority:[/bold] {seed.priority.value}\n"
            f"[bold]XP:[/bold] {seed.xp_reward}",
            title="Task Created",
            border_style="green",
        )
    )


@app.command()
def inbox(
    text: Annotated[str, typer.Argument(help="Free text, e.g. 'task: fix login #auth urgent xp:80'")],
) -> None:
    """Create a task from free text."""
    result = call_api(lambda client: client.submit_inbox(text))
    parsed = result["parsed"]
    console.print(f"[green]Created[/green] {result['id']}: {escape(parsed['title'])}")
    console.print(
        f"[dim]{parsed['columnId']} / {parsed['priority']} / "
        f"{parsed['xpReward']} XP / tags: {escape(', '.join(parsed['tags']) or '-')}[/dim]"
    )


@app.command()
def move(
    task_id: Annotated[str, typer.Argument(help="Task id")],
    column: Annotated[Column, typer.Argument(help="Target column")],
) -> None:
    """Move a task to another column. Entering DONE awards its XP once."""

    async def _move(client: BoardClient) -> tuple[Task, Stats, Stats]:
        before = await client.get_stats()
        task = await client.move_task(task_id, column)
        return task, before, await client.get_stats()

    task, before, after = call_api(_move)

    console.print(f"[cyan]{escape(task.title)}[/cyan] -> {task.column_id.value}")
    if after.xp > before.xp:
        console.print(f"[green]+{after.xp - before.xp} XP[/green] (total {after.xp}, level {after.level})")
        if after.level > before.level:
            console.print(f"[bold magenta]Level up! Now level {after.level}[/bold magenta]")


@app.command()
def delete(
    task_id: Annotated[str, typer.Argument(help="Task id")],
) -> None:
    """Delete a task. Deleting an unknown id is not an error."""
    deleted = call_api(lambda client: client.delete_task(task_id))
    if deleted:
        console.print(f"[green]Deleted[/green] {task_id}")
    else:
        console.print(f"[yellow]No task with id[/yellow] {task_id}")


@app.command()
def pull(
    cache: Annotated[
        Path,
        typer.Option("--cache", help="Cache file to merge into"),
    ] = DEFAULT_CACHE_PATH,
) -> None:
    """Refresh the local task cache from the API.

    A failed fetch keeps the cached tasks as they were and exits 1.
    """
    from questboard.main import get_app_context

    ctx = get_app_context()
    task_cache = TaskCache.load(cache)

    async def _refresh() -> bool:
        async with ctx.client() as client:
            return await task_cache.refresh(client.list_tasks)

    if not asyncio.run(_refresh()):
        console.print(
            f"[yellow]Refresh failed; keeping {len(task_cache.tasks)} cached task(s)[/yellow]"
        )
        raise typer.Exit(code=1)

    task_cache.save()
    console.print(f"[green]Cached {len(task_cache.tasks)} task(s)[/green] in {cache}")

