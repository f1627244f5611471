"""
Apidex Backend — Bundled Endpoint Tests
========================================

What:  Exercises the endpoint modules shipped in apidex/endpoints through the
       real application (test_client fixture).

What we test:
    ✅ GET /api/ lists the bundled descriptors in lexicographic module order
    ✅ Every mounted route is documented and vice versa
    ✅ GET /api/server-time formats
    ✅ GET /health reports only live cache entries
    ✅ Request ID echo and access log lines
    ✅ GET /api/groups is memoized through the TTL cache
"""

import logging
from datetime import datetime, timezone

import pytest
from fastapi.routing import APIRoute
from httpx import ASGITransport, AsyncClient

from apidex.config import Settings
from apidex.main import app, create_app
from apidex.schemas.descriptor import HTTP_METHODS
from apidex.services.ttl_cache import TTLCache


class TestDiscovery:

    @pytest.mark.asyncio
    async def test_index_lists_bundled_endpoints(self, test_client):
        response = await test_client.get("/api/")

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Apidex API"
        assert body["version"] == "1.0.0"
        assert body["status"] == "active"
        # endpoint_groups < health < server_time
        assert [(e["method"], e["path"]) for e in body["endpoints"]] == [
            ("GET", "/api/groups"),
            ("GET", "/health"),
            ("GET", "/api/server-time"),
        ]
        server_time = body["endpoints"][2]
        assert server_time["group"] == "System"
        assert server_time["version"] == "1.0.0"

    @pytest.mark.asyncio
    async def test_repeated_index_requests_agree(self, test_client):
        first = (await test_client.get("/api/")).json()
        second = (await test_client.get("/api/")).json()
        assert first["endpoints"] == second["endpoints"]

    def test_route_table_matches_documentation(self):
        """Every mounted route except /api/ itself is documented, and vice versa."""
        discovery = app.state.settings.discovery_path
        mounted = set()
        for route in app.routes:
            if isinstance(route, APIRoute) and route.path != discovery:
                methods = set(route.methods)
                method = "ANY" if methods == set(HTTP_METHODS) else methods.pop()
                mounted.add((route.path, method))

        documented = {d.key for d in app.state.aggregator.descriptors}
        assert mounted == documented


class TestServerTime:

    @pytest.mark.asyncio
    async def test_server_time_formats(self, test_client):
        before = datetime.now(timezone.utc).timestamp()
        response = await test_client.get("/api/server-time")
        after = datetime.now(timezone.utc).timestamp()

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert before * 1000 - 1 <= body["timestamp"] <= after * 1000 + 1
        assert abs(body["unix"] - body["timestamp"] // 1000) <= 1
        assert datetime.fromisoformat(body["iso"]).tzinfo is not None
        assert body["utc"].endswith("GMT")
        datetime.strptime(body["formatted"], "%Y-%m-%d %H:%M:%S")
        assert body["local"]

    def test_build_server_time_is_deterministic(self):
        from apidex.endpoints.server_time import build_server_time

        now = datetime(2025, 7, 16, 3, 57, 36, 123000, tzinfo=timezone.utc)
        rendered = build_server_time(now)

        assert rendered["timestamp"] == 1752638256123
        assert rendered["unix"] == 1752638256
        assert rendered["iso"] == "2025-07-16T03:57:36.123000+00:00"
        assert rendered["utc"] == "Wed, 16 Jul 2025 03:57:36 GMT"


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["endpoints"] == 3
        assert body["uptime_seconds"] >= 0
        assert body["cache_entries"] >= 0
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_client_request_id_is_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_unsafe_request_id_is_replaced(self, test_client):
        for supplied in ("has spaces", "x" * 65):
            response = await test_client.get("/health", headers={"X-Request-ID": supplied})
            echoed = response.headers["X-Request-ID"]
            assert echoed != supplied
            assert len(echoed) == 8

    @pytest.mark.asyncio
    async def test_cache_entries_counts_only_live_values(self, fake_clock):
        cache = TTLCache(clock=fake_clock)
        health_app = create_app(Settings(_env_file=None, log_level="WARNING"), cache=cache)
        cache.set("short", 1, ttl_ms=1000)
        cache.set("long", 2, ttl_ms=60_000)
        fake_clock.advance(5000)

        transport = ASGITransport(app=health_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            body = (await client.get("/health")).json()

        assert body["cache_entries"] == 1
        assert "short" not in cache


class TestAccessLog:

    @pytest.mark.asyncio
    async def test_access_line_names_endpoint_group(self, test_client, caplog):
        with caplog.at_level(logging.INFO, logger="apidex.access"):
            await test_client.get("/api/server-time", headers={"X-Request-ID": "trace-1"})

        lines = [r.getMessage() for r in caplog.records if r.name == "apidex.access"]
        assert len(lines) == 1
        assert lines[0].startswith("GET /api/server-time 200 ")
        assert "<System>" in lines[0]
        assert "[trace-1]" in lines[0]

    @pytest.mark.asyncio
    async def test_health_is_not_logged(self, test_client, caplog):
        with caplog.at_level(logging.INFO, logger="apidex.access"):
            await test_client.get("/health")
        assert not [r for r in caplog.records if r.name == "apidex.access"]


class TestEndpointGroups:

    @pytest.mark.asyncio
    async def test_groups_are_cached(self, test_client):
        app.state.cache.invalidate("endpoint-groups")

        first = await test_client.get("/api/groups")
        second = await test_client.get("/api/groups")

        assert first.status_code == 200
        assert first.json()["cached"] is False
        assert second.json()["cached"] is True
        assert first.json()["groups"] == second.json()["groups"]
        assert first.json()["groups"] == [
            {"group": "Discovery", "count": 1, "endpoints": ["GET /api/groups"]},
            {
                "group": "System",
                "count": 2,
                "endpoints": ["GET /health", "GET /api/server-time"],
            },
        ]

    @pytest.mark.asyncio
    async def test_invalidation_forces_recompute(self, test_client):
        await test_client.get("/api/groups")
        app.state.cache.invalidate("endpoint-groups")
        response = await test_client.get("/api/groups")
        assert response.json()["cached"] is False
