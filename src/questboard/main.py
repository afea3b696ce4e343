"""Main CLI entry point for Questboard.

This module provides the main Typer application with sub-commands for
tasks, board-level operations and the unattended agents. Every command
other than ``serve`` talks to a running API through BoardClient.

Usage:
    questboard serve --port 8000
    questboard tasks add "Ship release" --priority HIGH --tag ops
    questboard tasks inbox "new task: fix login #auth urgent xp:80"
    questboard agents sweep --demote
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import httpx
import typer
from rich.console import Console

from questboard.automation.client import BoardClient
from questboard.cli import agents as agents_cli
from questboard.cli import board as board_cli
from questboard.cli import tasks as tasks_cli
from questboard.config import QuestboardConfig, load_config
from questboard.logging import setup_logging

app = typer.Typer(
    name="questboard",
    help="Questboard: a Kanban board that keeps score",
    no_args_is_help=True,
)

app.add_typer(tasks_cli.app, name="tasks", help="Manage tasks")
app.add_typer(board_cli.app, name="board", help="Score, export, import and reset")
app.add_typer(agents_cli.app, name="agents", help="Run the unattended agents once")

console = Console()


class AppContext:
    """Application context shared across CLI commands.

    Attributes:
        config: Loaded Questboard configuration
        transport: httpx transport used by API clients; None means real
            network I/O
    """

    transport: httpx.AsyncBaseTransport | None = None

    def __init__(self, config: QuestboardConfig):
        self.config = config

    def client(self) -> BoardClient:
        """Build an API client from the automation settings."""
        return BoardClient.from_config(self.config.automation, transport=self.transport)


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(config: QuestboardConfig) -> AppContext:
    """Initialize the global application context."""
    global _app_context
    _app_context = AppContext(config)
    return _app_context


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to (default from config)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to (default from config)"),
    ] = None,
    reload: Annotated[
        bool,
        typer.Option("--reload", "-r", help="Enable auto-reload (development)"),
    ] = False,
) -> None:
    """Start the Questboard API server."""
    import uvicorn

    from questboard.web.app import create_app

    config = get_app_context().config
    host = host or config.web.host
    port = port or config.web.port

    console.print("[bold cyan]Starting Questboard API[/bold cyan]")
    console.print(f"[dim]Host:[/dim] {host}")
    console.print(f"[dim]Port:[/dim] {port}")
    if not config.database.url:
        console.print("[yellow]No database URL configured; store routes will answer 500.[/yellow]")
    console.print()

    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Load configuration, configure logging and initialize the context."""
    try:
        config = load_config(config_path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1)

    if verbose:
        config.logging.level = "DEBUG"
    setup_logging(config.logging)

    initialize_context(config)

    if verbose:
        console.print("[dim]Debug logging enabled[/dim]")


if __name__ == "__main__":
    app()
