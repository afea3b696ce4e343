"""HTTP API for Questboard.

The FastAPI application exposes the task store, the inbox parser, board
export/import and the agent health slot to the UI and the agents.
"""

from __future__ import annotations

from questboard.web.app import create_app
from questboard.web.middleware import RequestLoggingMiddleware

__all__ = [
    "create_app",
    "RequestLoggingMiddleware",
]
