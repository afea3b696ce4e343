"""Status slot query functions for Questboard."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from questboard.database.models.base import now_ms
from questboard.database.models.status import StatusEntry


async def get_status(session: AsyncSession, key: str) -> dict[str, Any] | None:
    """Read a status slot.

    Returns:
        The stored payload with an ``updatedAt`` key added, or None when
        the slot has never been written.
    """
    result = await session.execute(select(StatusEntry).where(StatusEntry.key == key))
    entry = result.scalar_one_or_none()
    if entry is None:
        return None
    payload = json.loads(entry.payload or "{}")
    if not isinstance(payload, dict):
        payload = {"value": payload}
    return {**payload, "updatedAt": entry.updated_at}


async def put_status(session: AsyncSession, key: str, payload: dict[str, Any]) -> StatusEntry:
    """Overwrite a status slot with a new payload."""
    result = await session.execute(select(StatusEntry).where(StatusEntry.key == key))
    entry = result.scalar_one_or_none()
    now = now_ms()
    if entry is None:
        entry = StatusEntry(key=key, created_at=now)
        session.add(entry)
    entry.payload = json.dumps(payload)
    entry.updated_at = now
    await session.flush()
    return entry
