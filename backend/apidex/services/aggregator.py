"""
Apidex Backend — Endpoint Aggregator
=====================================

What:  Collects EndpointDescriptors from every loaded module and renders the
       discovery document served at GET /api/.
Why:   Adding a feature should only mean dropping in a module; the index of
       endpoints must follow automatically instead of being edited by hand.
How:   register() appends in call order during bootstrap; snapshot() copies the
       collection into a fresh AggregatedDocument on every request.
Who:   Constructed once by create_app() and passed (not globally reached for)
       to the bootstrap, the discovery handler and ModuleContext.

Ordering Guarantee:
    Module registration order, then each module's export order. Bootstrap
    loads modules lexicographically, so the document is identical across
    restarts given the same set of files.

Duplicates:
    policy="warn"  → WARNING log; the later descriptor replaces the earlier
                     one and takes its place at the end of the list.
    policy="error" → DuplicateEndpointError, which aborts bootstrap.
    ANY collides with every verb on the same path, matching how the route
    would be served.

Concurrency:
    Written only during bootstrap, read-only afterwards; no lock needed.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from apidex.exceptions import DuplicateEndpointError
from apidex.schemas.descriptor import (
    AggregatedDocument,
    EndpointDescriptor,
    methods_overlap,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EndpointAggregator:
    """
    Process-wide, append-only collection of endpoint descriptors.

    Args:
        name / version / status: Static metadata for the discovery document
        duplicate_policy:        "warn" or "error"
        clock:                   Returns the generation timestamp (UTC)
    """

    def __init__(
        self,
        name: str = "Apidex API",
        version: str = "1.0.0",
        status: str = "active",
        duplicate_policy: str = "warn",
        clock: Callable[[], datetime] = utc_now,
    ):
        if duplicate_policy not in ("warn", "error"):
            raise ValueError(f"Unknown duplicate policy '{duplicate_policy}'")
        self.name = name
        self.version = version
        self.status = status
        self.duplicate_policy = duplicate_policy
        self._clock = clock
        self._descriptors: List[EndpointDescriptor] = []
        # (path, method) → identifier of the module that documented it
        self._owners: Dict[Tuple[str, str], str] = {}

    def register(
        self,
        descriptors: Iterable[EndpointDescriptor],
        module: Optional[str] = None,
    ) -> None:
        """
        Append one module's descriptors, preserving order.

        Raises:
            DuplicateEndpointError: policy is "error" and a (path, method)
                                    pair was already documented.
        """
        owner = module or "<anonymous>"
        for descriptor in descriptors:
            clashes = self.overlapping(descriptor.path, descriptor.method)
            for existing in clashes:
                previous = self._owners[existing.key]
                if self.duplicate_policy == "error":
                    raise DuplicateEndpointError(
                        identifier=owner,
                        method=descriptor.method,
                        path=descriptor.path,
                        previous=previous,
                    )
                logger.warning(
                    "Duplicate endpoint %s %s: '%s' overrides %s %s from '%s'",
                    descriptor.method,
                    descriptor.path,
                    owner,
                    existing.method,
                    existing.path,
                    previous,
                )
                del self._owners[existing.key]
            if clashes:
                dropped = {d.key for d in clashes}
                self._descriptors = [
                    d for d in self._descriptors if d.key not in dropped
                ]
            self._descriptors.append(descriptor)
            self._owners[descriptor.key] = owner

    def overlapping(self, path: str, method: str) -> List[EndpointDescriptor]:
        """Documented endpoints on `path` that `method` would collide with."""
        return [
            d
            for d in self._descriptors
            if d.path == path and methods_overlap(d.method, method)
        ]

    @property
    def descriptors(self) -> List[EndpointDescriptor]:
        """Copy of the collected descriptors in aggregation order."""
        return list(self._descriptors)

    def owner_of(self, path: str, method: str) -> Optional[str]:
        return self._owners.get((path, method))

    def by_key(self) -> Dict[Tuple[str, str], EndpointDescriptor]:
        return {d.key: d for d in self._descriptors}

    def snapshot(self) -> AggregatedDocument:
        """
        Build the discovery document.

        Pure with respect to the collection: two calls with no bootstrap
        activity in between differ only in `timestamp`.
        """
        return AggregatedDocument(
            name=self.name,
            version=self.version,
            status=self.status,
            endpoints=list(self._descriptors),
            timestamp=self._clock(),
        )

    def __len__(self) -> int:
        return len(self._descriptors)
