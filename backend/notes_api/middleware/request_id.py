"""
Notes API Backend: Request ID Middleware
=========================================

What:  Assigns a correlation id to each request and echoes it in `X-Request-ID`.
How:   Reuses a client-supplied `X-Request-ID` header when present, otherwise
       generates a short UUID. The id lives in a ContextVar so exception
       handlers and loggers can read it without access to the request.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Stores the request id in `request_id_var` and `request.state`."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 chars is enough for correlating log lines
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
