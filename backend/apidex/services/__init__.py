# Services package init
"""
Apidex Backend — Services Layer
================================

What:  The registry core sitting between endpoint modules and FastAPI.

Service Inventory:
    - TTLCache:            Lazy-expiry memoization shared by handlers
    - RouteDispatcher:     Staged register_route() table, mounted once
    - EndpointAggregator:  Ordered descriptor collection → discovery document
    - ModuleLoader:        Directory scan + import from an absolute path
    - RouterBootstrap:     Loads modules, checks contracts, mounts routes
    - handler_boundary:    Contains handler failures as structured 500s

Why these are separate from main.py:
    Each piece is unit-testable without an HTTP client, and tests can wire
    them with fake clocks and temporary module directories.
"""
