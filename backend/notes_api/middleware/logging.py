"""
Notes API Backend: Access Log Middleware
=========================================

What:  Writes one `notes_api.access` line per request once the response is ready.
Who:   Added in `create_app()`; runs inside RequestIDMiddleware, so the
       correlation id is already set when the line is written.

Example line:
    POST /api/notes → 201 in 84.2ms [3f9c2a1b] client=10.0.0.7 body=20481B

Note bodies and attachment bytes are never logged; only the declared
Content-Length of the request is recorded.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notes_api.middleware.request_id import request_id_var

logger = logging.getLogger("notes_api.access")

# Probe and documentation traffic
QUIET_PATHS = frozenset({"/health", "/api-docs", "/openapi.json", "/redoc"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Times the downstream app and logs the outcome at a status-dependent level."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        client = request.client.host if request.client else "-"
        body_size = request.headers.get("content-length", "0")

        logger.log(
            _level_for(response.status_code),
            "%s %s → %d in %.1fms [%s] client=%s body=%sB",
            request.method,
            path,
            response.status_code,
            elapsed_ms,
            request_id_var.get(""),
            client,
            body_size,
        )
        return response
