"""
Apidex Backend — Bundled Endpoint Modules
==========================================

What:  Drop-in endpoint modules loaded by RouterBootstrap at startup.
How:   Each *.py file here (names starting with "_" excepted) must define:

           ENDPOINTS = [
               {"path": "/api/thing", "method": "GET",
                "description": "...", "group": "...", "version": "1.0.0"},
           ]

           def register(ctx):
               ctx.dispatcher.register_route("GET", "/api/thing", handler)

       ENDPOINTS must list exactly the routes register() binds, or startup
       fails with ModuleContractError.

Module Inventory:
    - endpoint_groups.py: GET /api/groups       (descriptor counts per group)
    - health.py:          GET /health           (liveness, uptime, cache size)
    - server_time.py:     GET /api/server-time  (current time, several formats)

Files are loaded by path, not imported as `apidex.endpoints.*`, so this
package init is never executed during bootstrap.
"""
