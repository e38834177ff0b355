"""
WikiMaps Backend: Access Logging Middleware
===========================================

What:  One log line per request: method, path, status, duration, request ID,
       client address and the resolved session user (if any).
How:   Logger "wikimaps.access"; level follows the status class
       (5xx → ERROR, 4xx → WARNING, otherwise INFO). Structured fields are
       also attached via `extra=` for handlers that emit JSON.

Example:
    GET /maps/3/json 200 4.2ms [1f2e3d4c] from 127.0.0.1 user=alice

Request bodies are never logged (point descriptions and image references
are user content).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from wikimaps.middleware.request_id import request_id_var

logger = logging.getLogger("wikimaps.access")

# Probes hit these every few seconds
QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")
        user_id = getattr(request.state, "user_id", None)
        status = response.status_code

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s user=%s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            user_id or "-",
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "user_id": user_id,
            },
        )
        return response
