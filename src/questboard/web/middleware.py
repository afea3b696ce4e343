"""Per-request access logging for the Questboard API.

Each request runs under a correlation id, taken from ``X-Correlation-ID``
when the caller sends one. The id is echoed back on the response. Query
strings are never logged because the shared-secret token can travel there.
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from questboard.logging import get_logger, set_correlation_id

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log with a correlation id per request."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        set_correlation_id(correlation_id)
        route = {"method": request.method, "path": request.url.path}
        started = time.perf_counter()
        logger.debug("request_started", has_query=bool(request.url.query), **route)

        try:
            response = await call_next(request)
            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=_elapsed_ms(started),
                **route,
            )
        except Exception as exc:
            logger.error(
                "request_failed",
                duration_ms=_elapsed_ms(started),
                error=str(exc),
                exc_info=True,
                **route,
            )
            raise
        finally:
            set_correlation_id(None)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
