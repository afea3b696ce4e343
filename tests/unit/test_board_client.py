"""Unit tests for the HTTP client and the error taxonomy it rebuilds."""

from __future__ import annotations

import json

import httpx
import pytest

from questboard.automation.client import TOKEN_HEADER, BoardClient
from questboard.board.schema import Column, TaskPatch, TaskSeed
from questboard.errors import (
    BackingStoreUnavailableError,
    InvalidFormatError,
    NotFoundError,
    QuestboardError,
    UnauthorizedError,
    ValidationError,
    error_for_status,
)

TASK = {
    "id": "t1",
    "title": "Write docs",
    "description": "",
    "columnId": "DOING",
    "priority": "HIGH",
    "tags": ["docs"],
    "xpReward": 30,
    "createdAt": 1000,
    "updatedAt": 2000,
}


class TestErrorForStatus:
    """Test status code to exception mapping."""

    @pytest.mark.parametrize(
        ("status", "cls"),
        [
            (400, ValidationError),
            (401, UnauthorizedError),
            (404, NotFoundError),
            (422, ValidationError),
            (500, BackingStoreUnavailableError),
        ],
    )
    def test_mapping(self, status: int, cls: type[QuestboardError]) -> None:
        """Test that each status becomes the matching class."""
        error = error_for_status(status, "boom")
        assert isinstance(error, cls)
        assert error.message == "boom"

    def test_other_status_keeps_code(self) -> None:
        """Test that unmapped server errors keep their status code."""
        error = error_for_status(503, "unavailable")
        assert type(error) is QuestboardError
        assert error.status_code == 503

    def test_status_codes_on_classes(self) -> None:
        """Test the status code each error answers with."""
        assert ValidationError("x").status_code == 400
        assert InvalidFormatError("x").status_code == 400
        assert NotFoundError("t1").status_code == 404
        assert UnauthorizedError().status_code == 401
        assert BackingStoreUnavailableError("x").status_code == 500

    def test_not_found_default_message(self) -> None:
        """Test that NotFoundError names the missing id."""
        assert "t1" in NotFoundError("t1").message


def recording_transport(
    responses: dict[tuple[str, str], httpx.Response],
    seen: list[httpx.Request],
) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return responses[(request.method, request.url.path)]

    return httpx.MockTransport(handler)


class TestBoardClient:
    """Test request shapes and response decoding."""

    async def test_list_tasks_decodes_tasks(self) -> None:
        """Test that the task list is decoded into Task models."""
        seen: list[httpx.Request] = []
        transport = recording_transport(
            {("GET", "/api/tasks"): httpx.Response(200, json={"ok": True, "tasks": [TASK]})},
            seen,
        )
        async with BoardClient("http://board", transport=transport) as client:
            tasks = await client.list_tasks()

        assert tasks[0].id == "t1"
        assert tasks[0].column_id == Column.DOING

    async def test_token_sent_in_header(self) -> None:
        """Test that a configured token is sent on every request."""
        seen: list[httpx.Request] = []
        transport = recording_transport(
            {("GET", "/api/tasks"): httpx.Response(200, json={"ok": True, "tasks": []})},
            seen,
        )
        async with BoardClient("http://board", token="s3cret", transport=transport) as client:
            await client.list_tasks()

        assert seen[0].headers[TOKEN_HEADER] == "s3cret"

    async def test_update_sends_only_provided_fields(self) -> None:
        """Test that a patch body carries only set fields in camelCase."""
        seen: list[httpx.Request] = []
        transport = recording_transport(
            {("PATCH", "/api/tasks/t1"): httpx.Response(200, json={"ok": True, "task": TASK})},
            seen,
        )
        async with BoardClient("http://board", transport=transport) as client:
            await client.update_task("t1", TaskPatch(column_id=Column.DOING))

        assert json.loads(seen[0].content) == {"columnId": "DOING"}

    async def test_create_returns_id(self) -> None:
        """Test that create posts the seed and returns the new id."""
        seen: list[httpx.Request] = []
        transport = recording_transport(
            {("POST", "/api/tasks"): httpx.Response(201, json={"ok": True, "id": "new-id"})},
            seen,
        )
        async with BoardClient("http://board", transport=transport) as client:
            task_id = await client.create_task(TaskSeed(title="Ship it", tags=["Ops"]))

        body = json.loads(seen[0].content)
        assert task_id == "new-id"
        assert body["title"] == "Ship it"
        assert body["columnId"] == "TODO"
        assert body["tags"] == ["ops"]
        assert "id" not in body

    @pytest.mark.parametrize(
        ("status", "cls"),
        [
            (404, NotFoundError),
            (401, UnauthorizedError),
            (400, ValidationError),
            (500, BackingStoreUnavailableError),
        ],
    )
    async def test_error_responses_raise_matching_error(
        self, status: int, cls: type[QuestboardError]
    ) -> None:
        """Test that error bodies are raised as the matching exception."""
        transport = recording_transport(
            {("GET", "/api/tasks/t1"): httpx.Response(status, json={"ok": False, "error": "nope"})},
            [],
        )
        async with BoardClient("http://board", transport=transport) as client:
            with pytest.raises(cls) as exc_info:
                await client.get_task("t1")

        assert exc_info.value.message == "nope"

    async def test_non_json_error_body(self) -> None:
        """Test that a plain-text error body becomes the message."""
        transport = recording_transport(
            {("GET", "/api/stats"): httpx.Response(500, text="gateway exploded")},
            [],
        )
        async with BoardClient("http://board", transport=transport) as client:
            with pytest.raises(BackingStoreUnavailableError, match="gateway exploded"):
                await client.get_stats()

    async def test_requires_context_manager(self) -> None:
        """Test that using the client outside `async with` fails clearly."""
        client = BoardClient("http://board")
        with pytest.raises(RuntimeError):
            await client.list_tasks()
