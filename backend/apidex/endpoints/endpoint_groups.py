"""
Apidex Backend — Endpoint Groups Summary
=========================================

What:  GET /api/groups lists every documentation group with its endpoints.
Why:   Navigation menus and API explorers render groups, not a flat list.
How:   Groups the aggregator snapshot and memoizes the result in the TTL
       cache. The descriptor set is fixed after bootstrap, so the only
       cost of caching is a stale `generated_at`.

Response (200):
    {
        "groups": [
            {"group": "System", "count": 2,
             "endpoints": ["GET /api/server-time", "GET /health"]}
        ],
        "generated_at": "2025-07-16T03:57:36.123000+00:00",
        "cached": false
    }
"""

from collections import OrderedDict
from typing import Any, Dict, List

from apidex.services.handler_boundary import handler_boundary

ENDPOINTS = [
    {
        "path": "/api/groups",
        "method": "GET",
        "description": "List documented endpoints grouped by their documentation group",
        "group": "Discovery",
        "version": "1.0.0",
    },
]

CACHE_KEY = "endpoint-groups"


def summarize_groups(document) -> Dict[str, Any]:
    """Group an AggregatedDocument's endpoints, keeping first-seen group order."""
    groups: "OrderedDict[str, List[str]]" = OrderedDict()
    for descriptor in document.endpoints:
        groups.setdefault(descriptor.group, []).append(
            f"{descriptor.method} {descriptor.path}"
        )
    return {
        "groups": [
            {"group": name, "count": len(routes), "endpoints": routes}
            for name, routes in groups.items()
        ],
        "generated_at": document.timestamp.isoformat(),
    }


def register(ctx) -> None:
    cache = ctx.cache
    aggregator = ctx.aggregator
    ttl_ms = ctx.settings.groups_cache_ttl_ms

    @handler_boundary(message="Could not summarize endpoint groups")
    def list_groups() -> Dict[str, Any]:
        cached = cache.get(CACHE_KEY)
        if cached is not None:
            return {**cached, "cached": True}
        summary = summarize_groups(aggregator.snapshot())
        cache.set(CACHE_KEY, summary, ttl_ms)
        return {**summary, "cached": False}

    ctx.dispatcher.register_route("GET", "/api/groups", list_groups)
