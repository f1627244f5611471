"""
Apidex Backend — Request Logging Middleware
============================================

What:  One access log line per request, tagged with the documentation group
       of the endpoint that served it.
Why:   Handlers contain their own failures and answer 500; the access log is
       where those contained failures become visible to operators, and the
       group tells them which endpoint module to look at.
How:   Times call_next, then reads the matched route from the ASGI scope.
       Routes mounted by the dispatcher carry their descriptor group as the
       OpenAPI tag; unmatched requests are logged as "-".

Logged fields: method, path, status, duration_ms, group, request ID, client IP.
Never logged:  request bodies and headers.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from apidex.middleware.request_id import request_id_var

logger = logging.getLogger("apidex.access")

# Probed every few seconds; logging them buries real traffic
QUIET_PATHS = {"/health"}


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def route_group(request: Request) -> str:
    """Descriptor group of the matched route, or "-" when nothing matched."""
    route = request.scope.get("route")
    tags = getattr(route, "tags", None)
    return str(tags[0]) if tags else "-"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Writes the access log on the "apidex.access" logger."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        fields = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "group": route_group(request),
            "client_ip": request.client.host if request.client else "unknown",
        }
        logger.log(
            level_for_status(response.status_code),
            "%(method)s %(path)s %(status)d %(duration_ms).1fms <%(group)s> "
            "[%(request_id)s] from %(client_ip)s",
            fields,
            extra=fields,
        )
        return response
