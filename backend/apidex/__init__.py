"""
Apidex Backend — Application Package Initializer
=================================================

What: Marks the `apidex` directory as a Python package.
Why:  Enables module imports like `from apidex.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The service is a self-describing endpoint registry:

    ┌─────────────────────────────────────┐
    │     Endpoint Modules (endpoints/)   │  ← ENDPOINTS + register(ctx)
    ├─────────────────────────────────────┤
    │   Bootstrap → Dispatcher/Aggregator │  ← load order, contract checks
    ├─────────────────────────────────────┤
    │        TTL Cache (services/)        │  ← shared memoization
    ├─────────────────────────────────────┤
    │      FastAPI App (main.py)          │  ← middleware, error handlers
    └─────────────────────────────────────┘

    Endpoint modules never import the registry; everything they need is
    handed to them through a ModuleContext at load time.
"""

__version__ = "1.0.0"
