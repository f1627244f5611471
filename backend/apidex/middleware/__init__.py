"""
Apidex Backend — Middleware Package
====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first: every later log line can carry the correlation ID
    2. Logging: records method, path, status and duration on the way out
    3. GZip / CORS: applied by FastAPI's bundled middleware

    Responses travel the chain in reverse, so the request ID header is set
    on every response, including structured 500s.
"""
