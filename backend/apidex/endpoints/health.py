"""
Apidex Backend — Health Check Endpoint
=======================================

What:  Health check endpoint for monitoring and load balancer probes.
Why:   Load balancers use this to route away from unhealthy instances.
How:   A process that finished bootstrap can serve its whole route surface,
       so reaching this handler at all means "healthy". The response adds
       uptime and the current cache size for dashboards.
Who:   Called by Docker health checks, load balancers, and monitoring systems.
When:  Periodically (e.g., every 30 seconds by Docker, every 10 seconds by LB).
"""

import time

from pydantic import BaseModel, Field

from apidex import __version__
from apidex.services.handler_boundary import handler_boundary

ENDPOINTS = [
    {
        "path": "/health",
        "method": "GET",
        "description": "Service health check with uptime and cache size",
        "group": "System",
        "version": "1.0.0",
    },
]


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status")
    version: str = Field(description="Backend version")
    endpoints: int = Field(description="Documented endpoints in the registry")
    cache_entries: int = Field(description="Unexpired entries in the TTL cache")
    uptime_seconds: float = Field(description="Seconds since this module was loaded")


def register(ctx) -> None:
    # Initialized once per bootstrap; doesn't change afterwards
    started = time.time()
    cache = ctx.cache
    aggregator = ctx.aggregator

    @handler_boundary
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            version=__version__,
            endpoints=len(aggregator),
            cache_entries=cache.live_count(),
            uptime_seconds=round(time.time() - started, 2),
        )

    ctx.dispatcher.register_route("GET", "/health", health_check)
