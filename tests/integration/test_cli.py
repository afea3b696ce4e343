"""Integration tests for CLI commands.

The commands talk to a real app through httpx's ASGITransport. Each
command runs its own event loop, so the database is a SQLite file with
no connection pooling rather than the shared in-memory engine.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from typer.testing import CliRunner

from questboard.config import QuestboardConfig
from questboard.database.connection import ensure_schema, get_session_factory
from questboard.main import AppContext, app
from questboard.web.app import create_app


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config pointing the CLI at the in-process API."""
    path = tmp_path / "questboard.toml"
    path.write_text(
        "[logging]\n"
        'level = "WARNING"\n\n'
        "[automation]\n"
        'base_url = "http://test"\n'
        f'lock_dir = "{(tmp_path / "locks").as_posix()}"\n'
    )
    return path


@pytest.fixture
def cli_app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[FastAPI]:
    """API app on a SQLite file, wired into the CLI's transport."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{(tmp_path / 'board.db').as_posix()}",
        poolclass=NullPool,
    )
    asyncio.run(ensure_schema(engine))

    api = create_app(QuestboardConfig())
    api.state.session_factory = get_session_factory(engine)
    monkeypatch.setattr(AppContext, "transport", ASGITransport(app=api))
    yield api
    asyncio.run(engine.dispose())


@pytest.fixture
def invoke(cli_runner: CliRunner, config_file: Path, cli_app: FastAPI):
    """Run a CLI command against the test API."""

    def _invoke(*args: str):
        return cli_runner.invoke(app, ["--config", str(config_file), *args])

    return _invoke


def created_ids(invoke) -> list[str]:
    result = invoke("tasks", "list", "--format", "json")
    return [task["id"] for task in json.loads(result.stdout)]


@pytest.mark.integration
class TestTaskCommands:
    """Integration tests for task CLI commands."""

    def test_add_and_list(self, invoke) -> None:
        """Test that an added task shows up in the listing."""
        result = invoke(
            "tasks", "add", "Ship release", "-p", "HIGH", "-t", "Ops", "-t", "release", "--xp", "80"
        )

        assert result.exit_code == 0
        assert "Task Created" in result.stdout
        assert "Ship release" in result.stdout

        listing = invoke("tasks", "list", "--format", "json")
        tasks = json.loads(listing.stdout)
        assert len(tasks) == 1
        assert tasks[0]["priority"] == "HIGH"
        assert tasks[0]["tags"] == ["ops", "release"]
        assert tasks[0]["xpReward"] == 80

    def test_list_filters_by_column(self, invoke) -> None:
        """Test the --column filter."""
        invoke("tasks", "add", "Later", "-c", "BACKLOG")
        invoke("tasks", "add", "Now", "-c", "DOING")

        result = invoke("tasks", "list", "--column", "DOING", "--format", "json")

        assert [t["title"] for t in json.loads(result.stdout)] == ["Now"]

    def test_empty_list(self, invoke) -> None:
        """Test the listing of an empty board."""
        result = invoke("tasks", "list")
        assert result.exit_code == 0
        assert "No tasks found" in result.stdout

    def test_inbox(self, invoke) -> None:
        """Test creating a task from free text."""
        result = invoke("tasks", "inbox", "task: fix login #auth urgent xp:80")

        assert result.exit_code == 0
        assert "fix login" in result.stdout
        assert "URGENT" in result.stdout
        assert "80 XP" in result.stdout

    def test_move_to_done_reports_xp_and_level(self, invoke) -> None:
        """Test that completing a task prints the award and the level up."""
        invoke("tasks", "add", "Big one", "--xp", "150")
        (task_id,) = created_ids(invoke)

        result = invoke("tasks", "move", task_id, "DONE")

        assert result.exit_code == 0
        assert "+150 XP" in result.stdout
        assert "Level up! Now level 2" in result.stdout

    def test_move_unknown_task_fails(self, invoke) -> None:
        """Test that a 404 from the API exits 1."""
        result = invoke("tasks", "move", "missing", "DONE")

        assert result.exit_code == 1
        assert "404" in result.stdout

    def test_delete_twice(self, invoke) -> None:
        """Test that deleting is idempotent from the CLI too."""
        invoke("tasks", "add", "Doomed")
        (task_id,) = created_ids(invoke)

        first = invoke("tasks", "delete", task_id)
        second = invoke("tasks", "delete", task_id)

        assert first.exit_code == 0
        assert "Deleted" in first.stdout
        assert second.exit_code == 0
        assert "No task with id" in second.stdout

    def test_pull_writes_cache(self, invoke, tmp_path: Path) -> None:
        """Test that pull stores the fetched tasks in the cache file."""
        invoke("tasks", "add", "Cached")
        cache = tmp_path / "cache" / "tasks.json"

        result = invoke("tasks", "pull", "--cache", str(cache))

        assert result.exit_code == 0
        assert "Cached 1 task(s)" in result.stdout
        assert cache.exists()


@pytest.mark.integration
class TestBoardCommands:
    """Integration tests for board CLI commands."""

    def test_stats(self, invoke) -> None:
        """Test the score panel."""
        invoke("tasks", "add", "Quick", "--xp", "40", "-c", "DOING")
        (task_id,) = created_ids(invoke)
        invoke("tasks", "move", task_id, "DONE")

        result = invoke("board", "stats")

        assert result.exit_code == 0
        assert "Level:" in result.stdout
        assert "40 (40/100 into level)" in result.stdout
        assert "Streak: 1 day(s)" in result.stdout

    def test_export_clear_import(self, invoke, tmp_path: Path) -> None:
        """Test a full export, clear and import cycle through files."""
        invoke("tasks", "add", "Keep me")
        snapshot = tmp_path / "board.json"

        exported = invoke("board", "export", str(snapshot))
        cleared = invoke("board", "clear", "--yes")
        emptied = created_ids(invoke)
        imported = invoke("board", "import", str(snapshot))

        assert "Exported 1 task(s)" in exported.stdout
        assert json.loads(snapshot.read_text())["version"] == 1
        assert "Cleared 1 task(s)" in cleared.stdout
        assert emptied == []
        assert "Imported 1 task(s)" in imported.stdout
        assert len(created_ids(invoke)) == 1

    def test_clear_requires_confirmation(self, invoke) -> None:
        """Test that clear refuses to run without --yes."""
        invoke("tasks", "add", "Safe")

        result = invoke("board", "clear")

        assert result.exit_code == 1
        assert len(created_ids(invoke)) == 1

    def test_import_rejects_bad_snapshot(self, invoke, tmp_path: Path) -> None:
        """Test that a version mismatch exits 1 and keeps the board."""
        invoke("tasks", "add", "Safe")
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"version": 3, "tasks": []}))

        result = invoke("board", "import", str(bad))

        assert result.exit_code == 1
        assert len(created_ids(invoke)) == 1

    def test_import_rejects_non_json(self, invoke, tmp_path: Path) -> None:
        """Test that an unparsable file exits 1."""
        bad = tmp_path / "bad.json"
        bad.write_text("not json")

        result = invoke("board", "import", str(bad))

        assert result.exit_code == 1
        assert "Not a JSON file" in result.stdout


@pytest.mark.integration
class TestAgentCommands:
    """Integration tests for agent CLI commands."""

    def test_auto_start(self, invoke) -> None:
        """Test that the auto-starter reports the task it started."""
        invoke("tasks", "add", "Max: triage inbox")

        result = invoke("agents", "auto-start")

        assert result.exit_code == 0
        assert "Started: Max: triage inbox" in result.stdout
        tasks = json.loads(invoke("tasks", "list", "--format", "json").stdout)
        assert tasks[0]["columnId"] == "DOING"

    def test_auto_start_nothing_to_do(self, invoke) -> None:
        """Test the empty-board message."""
        result = invoke("agents", "auto-start")

        assert result.exit_code == 0
        assert "No matching tasks to start." in result.stdout

    def test_sweep_notify_with_nothing_stale(self, invoke) -> None:
        """Test that a fresh DOING task is not reported."""
        invoke("tasks", "add", "Fresh", "-c", "DOING")

        result = invoke("agents", "sweep")

        assert result.exit_code == 0
        assert "stale-sweeper: notify: none stale" in result.stdout

    def test_store_unavailable_exits_zero(
        self, cli_runner: CliRunner, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that an API without a database makes agent runs a quiet no-op."""
        monkeypatch.setattr(AppContext, "transport", ASGITransport(app=create_app()))

        result = cli_runner.invoke(
            app, ["--config", str(config_file), "agents", "sweep", "--demote"]
        )

        assert result.exit_code == 0
        assert "DOING task" not in result.stdout
