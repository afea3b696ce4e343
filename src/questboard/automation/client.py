"""Async HTTP client for the Questboard task API.

The automation agents and the CLI talk to the store only through this
client. Error responses are turned back into the Questboard exception
classes the server raised, so a 500 arrives as
BackingStoreUnavailableError, a 404 as NotFoundError, and so on.

Example usage:
    >>> from questboard.config import AutomationConfig
    >>> async with BoardClient.from_config(AutomationConfig()) as client:
    ...     tasks = await client.list_tasks()
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from questboard.board.schema import Column, Stats, Task, TaskPatch, TaskSeed
from questboard.config import AutomationConfig
from questboard.errors import error_for_status

logger = structlog.get_logger(__name__)

TOKEN_HEADER = "X-Questboard-Token"


class BoardClient:
    """Async client for the task API.

    Attributes:
        base_url: API base URL.
        token: Shared secret sent on every request when set.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL, e.g. "http://localhost:8000".
            token: Optional shared secret.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests pass an ASGITransport).
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls,
        config: AutomationConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> BoardClient:
        """Build a client from the automation configuration."""
        return cls(
            base_url=config.base_url,
            token=config.token,
            timeout=config.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> BoardClient:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers[TOKEN_HEADER] = self.token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        if self._client is None:
            raise RuntimeError("BoardClient must be used as an async context manager")

        response = await self._client.request(method, path, **kwargs)
        try:
            data = response.json()
        except ValueError:
            data = response.text

        if response.is_success:
            return data

        message = (data.get("error") or data.get("detail")) if isinstance(data, dict) else None
        if not message:
            message = data if isinstance(data, str) and data else f"HTTP {response.status_code}"
        logger.warning(
            "api_request_failed",
            method=method,
            path=path,
            status_code=response.status_code,
            error=str(message),
        )
        raise error_for_status(response.status_code, str(message))

    async def list_tasks(self) -> list[Task]:
        """Fetch all tasks."""
        data = await self._request("GET", "/api/tasks")
        return [Task.model_validate(item) for item in data.get("tasks", [])]

    async def get_task(self, task_id: str) -> Task:
        data = await self._request("GET", f"/api/tasks/{task_id}")
        return Task.model_validate(data["task"])

    async def create_task(self, seed: TaskSeed) -> str:
        """Create a task and return its id."""
        body = seed.model_dump(by_alias=True, mode="json", exclude_none=True)
        data = await self._request("POST", "/api/tasks", json=body)
        return str(data["id"])

    async def submit_inbox(self, text: str) -> dict[str, Any]:
        """Send free text to the inbox parser; returns ``{id, parsed}``."""
        data = await self._request("POST", "/api/inbox", json={"text": text})
        return {"id": data["id"], "parsed": data["parsed"]}

    async def update_task(self, task_id: str, patch: TaskPatch) -> Task:
        """Apply a partial update."""
        body = patch.model_dump(by_alias=True, mode="json", exclude_unset=True, exclude_none=True)
        data = await self._request("PATCH", f"/api/tasks/{task_id}", json=body)
        return Task.model_validate(data["task"])

    async def move_task(self, task_id: str, column: Column) -> Task:
        data = await self._request(
            "POST",
            f"/api/tasks/{task_id}/move",
            json={"columnId": column.value},
        )
        return Task.model_validate(data["task"])

    async def delete_task(self, task_id: str) -> bool:
        data = await self._request("DELETE", f"/api/tasks/{task_id}")
        return bool(data.get("deleted"))

    async def get_stats(self) -> Stats:
        data = await self._request("GET", "/api/stats")
        return Stats.model_validate(data["stats"])

    async def export_board(self) -> dict[str, Any]:
        return await self._request("GET", "/api/board/export")

    async def import_board(self, snapshot: dict[str, Any]) -> int:
        data = await self._request("POST", "/api/board/import", json=snapshot)
        return int(data.get("imported", 0))

    async def clear_board(self) -> int:
        data = await self._request("POST", "/api/board/clear")
        return int(data.get("deleted", 0))
