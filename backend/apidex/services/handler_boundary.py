"""
Apidex Backend — Handler Error Boundary
========================================

What:  Decorator that keeps every endpoint failure inside its own request.
Why:   An uncaught exception escaping a handler is a bare 500 from the host
       with no guaranteed body. Each handler must answer with the structured
       error body instead, without relying on an outer safety net.
How:   Wraps sync or async handlers; exceptions become a JSONResponse(500).
       functools.wraps keeps the original signature visible to FastAPI so
       query/path parameters and Request injection still work.

Response body on failure:
    {"status": "error", "message": "<human readable>", "error": "<detail>"}

HTTPException (Starlette's, which FastAPI's subclasses) passes through
untouched: it is an intentional response (404, 400 ...) chosen by the
handler, not a failure.
"""

import functools
import inspect
import logging
from typing import Any, Callable

from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from apidex.exceptions import HandlerError

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Internal server error"


def error_response(message: str, error: str) -> JSONResponse:
    """Structured 500 shared by the boundary and the application handlers."""
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": message, "error": error},
    )


def _to_response(func: Callable[..., Any], exc: Exception, message: str) -> JSONResponse:
    if isinstance(exc, HandlerError):
        logger.error("Handler %s failed: %s (%s)", func.__qualname__, exc.message, exc.error)
        return error_response(exc.message, exc.error)
    logger.exception("Handler %s raised an unexpected error", func.__qualname__)
    return error_response(message, str(exc) or type(exc).__name__)


def handler_boundary(
    func: Callable[..., Any] = None, *, message: str = DEFAULT_ERROR_MESSAGE
):
    """
    Contain handler failures as structured 500 responses.

    Usage:
        @handler_boundary
        async def get_time() -> dict: ...

        @handler_boundary(message="Could not build report")
        def get_report(request: Request) -> dict: ...
    """

    def decorate(handler: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(handler):

            @functools.wraps(handler)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await handler(*args, **kwargs)
                except HTTPException:
                    raise
                except Exception as exc:
                    return _to_response(handler, exc, message)

            return async_wrapper

        @functools.wraps(handler)
        def sync_wrapper(*args, **kwargs):
            try:
                return handler(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as exc:
                return _to_response(handler, exc, message)

        return sync_wrapper

    if func is not None:
        return decorate(func)
    return decorate
