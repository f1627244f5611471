"""
Apidex Backend — FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware, error handlers, endpoint bootstrap and
       lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn apidex.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Logging → GZip → CORS    │
    │                                                     │
    │  Routes (mounted by RouterBootstrap):               │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐ │
    │  │ endpoints/*  │ │ ...      │ │ GET /api/ index │ │
    │  └──────────────┘ └──────────┘ └─────────────────┘ │
    │                                                     │
    │  Exception Handlers: HandlerError / Exception → 500 │
    └─────────────────────────────────────────────────────┘

Startup is fail-fast: a BootstrapError propagates out of create_app(), so
`uvicorn apidex.main:app` refuses to start with an inconsistent route surface.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from apidex import __version__
from apidex.config import Settings, settings
from apidex.exceptions import BootstrapError, HandlerError
from apidex.middleware.logging import RequestLoggingMiddleware
from apidex.middleware.request_id import RequestIDMiddleware, request_id_var
from apidex.services.aggregator import EndpointAggregator
from apidex.services.bootstrap import RouterBootstrap
from apidex.services.dispatcher import RouteDispatcher
from apidex.services.handler_boundary import DEFAULT_ERROR_MESSAGE, error_response
from apidex.services.module_loader import ModuleLoader
from apidex.services.ttl_cache import TTLCache

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    What:    One stdout handler with a consistent format across modules.
    When:    Called once at import of this module, before the app is built,
             so bootstrap diagnostics are formatted too.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Log the assembled route surface on startup; drop cached values on shutdown.

    Bootstrap itself already ran inside create_app(); by the time uvicorn
    enters the lifespan every route is mounted.
    """
    app_settings: Settings = app.state.settings
    logger.info("=" * 60)
    logger.info(
        "%s %s ready: %d endpoint modules, %d documented endpoints",
        app_settings.api_name,
        app_settings.api_version,
        len(app.state.bootstrap.records),
        len(app.state.aggregator),
    )
    logger.info(
        "Discovery: http://%s:%d%s",
        app_settings.backend_host,
        app_settings.backend_port,
        app_settings.discovery_path,
    )
    logger.info("=" * 60)

    yield

    logger.info("Shutting down; clearing %d cache entries", len(app.state.cache))
    app.state.cache.clear()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Host-level safety net.

    Handlers are expected to contain their own failures (handler_boundary);
    these only fire for code that forgot to, and answer with the same body:
        {"status": "error", "message": ..., "error": ...}
    """

    @app.exception_handler(HandlerError)
    async def handle_handler_error(request: Request, exc: HandlerError):
        rid = request_id_var.get("")
        logger.error("[%s] Handler error: %s | %s", rid, exc.message, exc.error)
        return error_response(exc.message, exc.error)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(DEFAULT_ERROR_MESSAGE, str(exc) or type(exc).__name__)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    cache: Optional[TTLCache] = None,
) -> FastAPI:
    """
    Create the FastAPI application and bootstrap all endpoint modules.

    Args:
        app_settings: Overrides the module-level settings (tests pass their own)
        cache:        Shared TTL cache; a fresh one is created when omitted

    Raises:
        BootstrapError: an endpoint module failed to load or broke its
                        descriptor contract. Nothing is served.
    """
    if app_settings is None:
        app_settings = settings
    if cache is None:
        cache = TTLCache(default_ttl_ms=app_settings.cache_default_ttl_ms)

    app = FastAPI(
        title=app_settings.api_name,
        description=(
            "Self-describing endpoint registry. Every route is contributed by an "
            f"endpoint module and listed at {app_settings.discovery_path}."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in REVERSE order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Bootstrap Endpoint Modules ────────────────────────────────────────
    aggregator = EndpointAggregator(
        name=app_settings.api_name,
        version=app_settings.api_version,
        status=app_settings.api_status,
        duplicate_policy=app_settings.duplicate_endpoint_policy,
    )
    bootstrap = RouterBootstrap(
        loader=ModuleLoader(app_settings.resolved_endpoints_dir()),
        dispatcher=RouteDispatcher(),
        aggregator=aggregator,
        cache=cache,
        settings=app_settings,
    )
    try:
        bootstrap.run(app)
    except BootstrapError as e:
        logger.critical("Startup aborted: %s | Context: %s", e.message, e.context)
        raise

    app.state.settings = app_settings
    app.state.cache = cache
    app.state.aggregator = aggregator
    app.state.bootstrap = bootstrap
    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `apidex.main:app` to be importable
setup_logging(settings.log_level)
app = create_app()
