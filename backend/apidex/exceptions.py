"""
Apidex Backend — Custom Exception Hierarchy
============================================

What:  Defines application-specific exceptions for startup and request errors.
Why:   Bootstrap failures must abort the process with a precise diagnostic,
       while request failures must be contained and rendered as a structured
       500 body. Separate types let each layer catch exactly what it owns.
How:   Each exception class carries a message and optional context dict.
Who:   Raised by the loader, dispatcher, aggregator, bootstrap and handlers.

Exception Hierarchy:
    ApidexError (base)
    ├── BootstrapError               → fatal at startup, process never serves
    │   ├── ModuleLoadError          → module file failed to import/register
    │   └── ModuleContractError      → descriptors malformed or mismatched
    │       └── DuplicateEndpointError → (path, method) twice, policy=error
    └── HandlerError                 → 500 {status, message, error}

A cache miss is not an exception: TTLCache.get() simply returns the default.
"""

from typing import Any, Dict, Iterable, Optional, Tuple


class ApidexError(Exception):
    """
    Base exception for all Apidex application errors.

    Attributes:
        message:  Human-readable error description
        context:  Additional debug info (logged alongside the message)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BootstrapError(ApidexError):
    """
    Raised when the route surface cannot be assembled.

    When:    During RouterBootstrap.run(), before any route is mounted.
    Effect:  create_app() logs it at CRITICAL and re-raises; uvicorn exits.
    """


class ModuleLoadError(BootstrapError):
    """
    Raised when an endpoint module cannot be imported or its register() fails.
    """

    def __init__(
        self,
        identifier: str,
        message: str = "Endpoint module failed to load",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["module"] = identifier
        super().__init__(message=f"[{identifier}] {message}", context=ctx)
        self.identifier = identifier


class ModuleContractError(BootstrapError):
    """
    Raised when a module's exported descriptors are malformed or do not match
    the routes it registered.

    Attributes:
        identifier:    Module that violated the contract
        undocumented:  (method, path) pairs registered without a descriptor
        unregistered:  (method, path) pairs documented but never registered
    """

    def __init__(
        self,
        identifier: str,
        message: str = "Endpoint module violates the descriptor contract",
        undocumented: Iterable[Tuple[str, str]] = (),
        unregistered: Iterable[Tuple[str, str]] = (),
        context: Optional[Dict[str, Any]] = None,
    ):
        self.identifier = identifier
        self.undocumented = sorted(undocumented)
        self.unregistered = sorted(unregistered)
        ctx = context or {}
        ctx["module"] = identifier
        if self.undocumented:
            ctx["undocumented"] = [f"{m} {p}" for m, p in self.undocumented]
        if self.unregistered:
            ctx["unregistered"] = [f"{m} {p}" for m, p in self.unregistered]
        super().__init__(message=f"[{identifier}] {message}", context=ctx)


class DuplicateEndpointError(ModuleContractError):
    """
    Raised when two descriptors share a (path, method) pair and the duplicate
    policy is 'error'.
    """

    def __init__(self, identifier: str, method: str, path: str, previous: str):
        super().__init__(
            identifier=identifier,
            message=(
                f"{method} {path} is already documented by module '{previous}'"
            ),
            context={"method": method, "path": path, "previous_module": previous},
        )
        self.method = method
        self.path = path
        self.previous = previous


class HandlerError(ApidexError):
    """
    Raised inside an endpoint handler to control the structured 500 body.

    HTTP:    500 Internal Server Error
    Body:    {"status": "error", "message": <message>, "error": <error>}

    Never crosses the handler boundary: handler_boundary() converts it into a
    response before FastAPI sees it.
    """

    def __init__(
        self,
        message: str = "Internal server error",
        error: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.error = error or message
