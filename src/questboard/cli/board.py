"""Board-level CLI commands: score, export, import and reset."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.panel import Panel
from rich.progress_bar import ProgressBar

from questboard.cli import call_api, console
from questboard.gamification import level_progress

app = typer.Typer(help="Board-level commands")


@app.command()
def stats() -> None:
    """Show XP, level and streak."""
    score = call_api(lambda client: client.get_stats())
    progress = level_progress(score.xp)

    console.print(
        Panel(
            f"[bold]Level:[/bold] {score.level}\n"
            f"[bold]XP:[/bold] {score.xp} ({progress.into}/{progress.needed} into level)\n"
            f"[bold]Streak:[/bold] {score.streak} day(s)\n"
            f"[bold]Last completion:[/bold] {score.last_done_day or '-'}",
            title="Score",
            border_style="magenta",
        )
    )
    console.print(ProgressBar(total=progress.needed, completed=progress.into, width=40))


@app.command()
def export(
    path: Annotated[Path, typer.Argument(help="File to write the snapshot to ('-' for stdout)")],
) -> None:
    """Write a versioned snapshot of all tasks and the score."""
    snapshot = call_api(lambda client: client.export_board())
    text = json.dumps(snapshot, indent=2)

    if str(path) == "-":
        console.print_json(text)
        return

    path.write_text(text + "\n", encoding="utf-8")
    console.print(f"[green]Exported {len(snapshot['tasks'])} task(s)[/green] to {path}")


@app.command("import")
def import_board(
    path: Annotated[
        Path,
        typer.Argument(help="Snapshot file to import", exists=True, dir_okay=False, readable=True),
    ],
) -> None:
    """Replace every task and the score with a snapshot's contents."""
    try:
        snapshot = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Not a JSON file:[/red] {e}")
        raise typer.Exit(code=1)

    count = call_api(lambda client: client.import_board(snapshot))
    console.print(f"[green]Imported {count} task(s)[/green] from {path}")


@app.command()
def clear(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Confirm deleting every task and resetting the score"),
    ] = False,
) -> None:
    """Delete all tasks and reset the score. Requires --yes."""
    if not yes:
        console.print("[red]Refusing to clear the board without --yes[/red]")
        raise typer.Exit(code=1)

    count = call_api(lambda client: client.clear_board())
    console.print(f"[green]Cleared {count} task(s)[/green]; score reset")
