"""
Apidex Backend — Request ID Middleware
=======================================

What:  Assigns a short ID to each incoming request and echoes it back.
Why:   Correlates the access log line, handler error logs and the client's
       own report for the same request.
How:   A well-formed client X-Request-ID is reused; anything else (missing,
       too long, or carrying characters that would garble a log line) is
       replaced by a fresh ID. The ID lives in a ContextVar for loggers and in
       request.state for handlers.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Printable token only; the ID is interpolated into every access log line
VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(supplied: Optional[str]) -> str:
    """Client-supplied ID when it is a safe token, otherwise a new one."""
    if supplied and VALID_REQUEST_ID.match(supplied):
        return supplied
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags every request and response with a correlation ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
