"""
Apidex Backend — Server Time Endpoint
======================================

What:  GET /api/server-time returns the current server time in several formats.
Who:   Clients that need to correct for clock skew, and uptime probes that
       want something cheaper than /health.

Response (200):
    {
        "timestamp": 1752638256123,              # epoch milliseconds
        "iso": "2025-07-16T03:57:36.123000+00:00",
        "utc": "Wed, 16 Jul 2025 03:57:36 GMT",  # RFC 1123 HTTP-date
        "unix": 1752638256,                      # epoch seconds
        "local": "Wed Jul 16 2025 05:57:36 GMT+0200 (CEST)",
        "formatted": "2025-07-16 05:57:36",      # local, YYYY-MM-DD HH:mm:ss
        "status": "success"
    }

Never cached: the whole point is a fresh reading.
"""

from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Dict

from apidex.services.handler_boundary import handler_boundary

ENDPOINTS = [
    {
        "path": "/api/server-time",
        "method": "GET",
        "description": "Get current server timestamp in multiple formats",
        "group": "System",
        "version": "1.0.0",
    },
]


def build_server_time(now: datetime) -> Dict[str, Any]:
    """Render one aware UTC datetime in every supported format."""
    local = now.astimezone()
    return {
        "timestamp": int(now.timestamp() * 1000),
        "iso": now.isoformat(),
        "utc": format_datetime(now, usegmt=True),
        "unix": int(now.timestamp()),
        "local": local.strftime("%a %b %d %Y %H:%M:%S GMT%z (%Z)"),
        "formatted": local.strftime("%Y-%m-%d %H:%M:%S"),
        "status": "success",
    }


@handler_boundary
async def get_server_time() -> Dict[str, Any]:
    return build_server_time(datetime.now(timezone.utc))


def register(ctx) -> None:
    ctx.dispatcher.register_route("GET", "/api/server-time", get_server_time)
