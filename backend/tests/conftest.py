"""
Apidex Backend — Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (fake clocks, temporary endpoint
       module directories, API clients).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── fake_clock:    Manually advanced millisecond clock for TTLCache
    ├── cache:         TTLCache driven by fake_clock
    ├── modules_dir:   Empty absolute directory for endpoint modules
    ├── write_module:  Writes a dedented endpoint module into modules_dir
    ├── make_settings: Builds Settings pointing at modules_dir
    └── test_client:   HTTPX AsyncClient bound to the bundled application
"""

import os
import textwrap

# Override settings for testing BEFORE any app imports
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("ENDPOINTS_DIR", None)

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from apidex.config import Settings
from apidex.services.ttl_cache import TTLCache
from tests.endpoint_sources import PING_MODULE, TIME_MODULE


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def cache(fake_clock):
    """TTLCache with a 5 minute default TTL and a controllable clock."""
    return TTLCache(default_ttl_ms=300_000, clock=fake_clock)


@pytest.fixture
def modules_dir(tmp_path):
    """
    Provides an empty, absolute directory for endpoint modules.

    What:    tmp_path/endpoints, created fresh for each test.
    Why:     Bootstrap scenarios need full control over which modules exist.
    """
    directory = tmp_path / "endpoints"
    directory.mkdir()
    return directory


@pytest.fixture
def write_module(modules_dir):
    """
    Writes an endpoint module file.

    Usage:
        write_module("a_time", '''
            ENDPOINTS = [...]
            def register(ctx): ...
        ''')
    """

    def _write(name: str, source: str):
        path = modules_dir / f"{name}.py"
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_settings(modules_dir):
    """Builds Settings whose endpoint directory is the test's modules_dir."""

    def _make(**overrides) -> Settings:
        values = {"endpoints_dir": str(modules_dir), "log_level": "WARNING"}
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def two_modules(write_module):
    """Module 'a_time' and module 'b_ping', loaded in that order."""
    write_module("a_time", TIME_MODULE)
    write_module("b_ping", PING_MODULE)


@pytest_asyncio.fixture
async def test_client():
    """
    Provides an async HTTP test client for the bundled application.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from apidex.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
