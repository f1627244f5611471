"""
Apidex Backend — Route Dispatcher
==================================

What:  The `register_route(method, path, handler)` capability handed to
       endpoint modules, backed by a FastAPI application.
Why:   Modules must not touch the FastAPI app directly. Staging their routes
       lets the bootstrap verify every module before a single route becomes
       servable, and lets tests compare "what was registered" against
       "what was documented".
How:   Registrations go into an ordered route table keyed by (path, method).
       mount() materializes the table with add_api_route() exactly once.

Route Table Semantics:
    - Methods are normalized to upper case; "ANY" binds every verb.
    - Registering a route that overlaps a staged one replaces it (last
      registration wins) and logs a warning. ANY overlaps every verb on the
      same path, so GET /x evicts a staged ANY /x and vice versa.
    - After mount() the dispatcher is sealed; late registrations raise.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from fastapi import APIRouter, FastAPI

from apidex.schemas.descriptor import (
    ANY_METHOD,
    HTTP_METHODS,
    EndpointDescriptor,
    methods_overlap,
    normalize_method,
)

logger = logging.getLogger(__name__)

RouteKey = Tuple[str, str]


@dataclass(frozen=True)
class StagedRoute:
    """A registration waiting to be mounted."""

    path: str
    method: str
    handler: Callable[..., Any]
    owner: Optional[str] = None

    @property
    def key(self) -> RouteKey:
        return (self.path, self.method)

    @property
    def methods(self) -> List[str]:
        if self.method == ANY_METHOD:
            return list(HTTP_METHODS)
        return [self.method]


class RouteDispatcher:
    """
    Process-wide route table shared by all endpoint modules.

    Written only during bootstrap (single-threaded, before serving), so it
    carries no lock.
    """

    def __init__(self) -> None:
        self._routes: Dict[RouteKey, StagedRoute] = {}
        self._mounted = False

    @property
    def mounted(self) -> bool:
        return self._mounted

    def register_route(
        self,
        method: str,
        path: str,
        handler: Callable[..., Any],
        owner: Optional[str] = None,
    ) -> RouteKey:
        """
        Stage `handler` for (path, method).

        Returns:
            The normalized (path, method) key.

        Raises:
            RuntimeError: if called after mount().
            ValueError:   on an unknown method, a path without a leading '/',
                          or a non-callable handler.
        """
        if self._mounted:
            raise RuntimeError(
                f"Cannot register {method} {path}: routes are already mounted"
            )
        normalized = normalize_method(method)
        if not isinstance(path, str) or not path.startswith("/"):
            raise ValueError(f"Route path must start with '/', got {path!r}")
        if not callable(handler):
            raise ValueError(f"Handler for {normalized} {path} is not callable")

        route = StagedRoute(path=path, method=normalized, handler=handler, owner=owner)
        for previous in self.overlapping(path, normalized):
            del self._routes[previous.key]
            logger.warning(
                "Route %s %s from '%s' replaced by %s %s from '%s'",
                previous.method,
                path,
                previous.owner,
                normalized,
                path,
                owner,
            )
        self._routes[route.key] = route
        return route.key

    def overlapping(self, path: str, method: str) -> List[StagedRoute]:
        """Staged routes on `path` that would answer requests for `method`."""
        method = normalize_method(method)
        return [
            route
            for route in self._routes.values()
            if route.path == path and methods_overlap(route.method, method)
        ]

    def routes(self) -> List[RouteKey]:
        """Staged (path, method) pairs in registration order."""
        return list(self._routes)

    def get(self, path: str, method: str) -> Optional[StagedRoute]:
        return self._routes.get((path, normalize_method(method)))

    def mount(
        self,
        target: Union[FastAPI, APIRouter],
        metadata: Optional[Mapping[RouteKey, EndpointDescriptor]] = None,
    ) -> int:
        """
        Materialize every staged route on `target` and seal the dispatcher.

        Args:
            metadata: Descriptors keyed by (path, method); when present their
                      group becomes the OpenAPI tag and their description the
                      summary.

        Returns:
            Number of routes mounted.
        """
        if self._mounted:
            raise RuntimeError("Routes are already mounted")
        metadata = metadata or {}
        for route in self._routes.values():
            descriptor = metadata.get(route.key)
            target.add_api_route(
                route.path,
                route.handler,
                methods=route.methods,
                tags=[descriptor.group] if descriptor else None,
                summary=descriptor.description if descriptor else None,
            )
        self._mounted = True
        logger.info("Mounted %d routes", len(self._routes))
        return len(self._routes)


class ModuleDispatcher:
    """
    Per-module view of the shared dispatcher.

    What:  Forwards registrations while remembering which (path, method)
           pairs this module bound, for the descriptor cross-check.
    Who:   Exposed to endpoint modules as ModuleContext.dispatcher.
    """

    def __init__(self, dispatcher: RouteDispatcher, identifier: str):
        self._dispatcher = dispatcher
        self.identifier = identifier
        self.registered: List[RouteKey] = []

    def register_route(self, method: str, path: str, handler: Callable[..., Any]) -> RouteKey:
        key = self._dispatcher.register_route(method, path, handler, owner=self.identifier)
        if key not in self.registered:
            self.registered.append(key)
        return key
