"""
Apidex Backend — Router Bootstrap
==================================

What:  One-shot startup sequence that turns endpoint module files into live
       routes plus the discovery route.
Why:   A half-registered route surface is unsafe to serve. Every module is
       loaded and verified before anything is mounted on the application;
       any failure aborts startup.
How:   For each discovered module, in lexicographic order:
           PENDING → import → validate ENDPOINTS → register(ctx)
                   → cross-check routes vs descriptors → aggregate → LOADED
       Then register GET <discovery_path> and mount the staged route table.

State Machine (per module):
    PENDING ──load ok──► LOADED (terminal)
       │
       └──any failure──► BootstrapError raised; the whole process stops.
    There is no retry state and no hot add/remove after run() completes.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Union

from fastapi import APIRouter, FastAPI
from pydantic import ValidationError

from apidex.config import Settings
from apidex.exceptions import BootstrapError, ModuleContractError, ModuleLoadError
from apidex.schemas.descriptor import AggregatedDocument, EndpointDescriptor
from apidex.services.aggregator import EndpointAggregator
from apidex.services.dispatcher import ModuleDispatcher, RouteDispatcher
from apidex.services.handler_boundary import handler_boundary
from apidex.services.module_loader import ModuleLoader
from apidex.services.ttl_cache import TTLCache

logger = logging.getLogger(__name__)


class ModuleState(str, Enum):
    PENDING = "pending"
    LOADED = "loaded"


@dataclass
class ModuleContext:
    """
    Everything an endpoint module's register(ctx) may use.

    Attributes:
        identifier: The module's own load identifier
        dispatcher: Recording view; call ctx.dispatcher.register_route(...)
        cache:      Process-wide TTL cache
        aggregator: Read access to the descriptor collection (snapshot())
        settings:   Application settings
    """

    identifier: str
    dispatcher: ModuleDispatcher
    cache: TTLCache
    aggregator: EndpointAggregator
    settings: Settings


@dataclass
class ModuleRecord:
    identifier: str
    state: ModuleState = ModuleState.PENDING
    descriptors: List[EndpointDescriptor] = field(default_factory=list)
    registered: List[Tuple[str, str]] = field(default_factory=list)


def validate_descriptors(identifier: str, exported: Any) -> List[EndpointDescriptor]:
    """
    Check a module's ENDPOINTS export against the EndpointDescriptor schema.

    Raises:
        ModuleContractError: export is not a non-empty list/tuple, or any
                             item fails validation.
    """
    if not isinstance(exported, (list, tuple)):
        raise ModuleContractError(
            identifier,
            f"ENDPOINTS must be a list or tuple, got {type(exported).__name__}",
        )
    if not exported:
        raise ModuleContractError(identifier, "ENDPOINTS must not be empty")

    descriptors = []
    for index, item in enumerate(exported):
        try:
            descriptors.append(EndpointDescriptor.model_validate(item))
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'item'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ModuleContractError(
                identifier,
                f"ENDPOINTS[{index}] is malformed: {problems}",
            ) from exc
    return descriptors


def check_consistency(
    identifier: str,
    descriptors: Sequence[EndpointDescriptor],
    registered: Sequence[Tuple[str, str]],
) -> None:
    """
    Require the documented (path, method) set to equal the registered set.

    Raises:
        ModuleContractError: listing undocumented and unregistered routes.
    """
    documented = {d.key for d in descriptors}
    bound = set(registered)
    if documented == bound:
        return
    undocumented = [(method, path) for path, method in bound - documented]
    unregistered = [(method, path) for path, method in documented - bound]
    parts = []
    if undocumented:
        parts.append("registered without descriptor: " + ", ".join(
            f"{m} {p}" for m, p in sorted(undocumented)))
    if unregistered:
        parts.append("documented but not registered: " + ", ".join(
            f"{m} {p}" for m, p in sorted(unregistered)))
    raise ModuleContractError(
        identifier,
        "Descriptors do not match registered routes (" + "; ".join(parts) + ")",
        undocumented=undocumented,
        unregistered=unregistered,
    )


class RouterBootstrap:
    """
    Loads all endpoint modules, then stands up the discovery route.

    Not reentrant: run() may be called once per instance.
    """

    def __init__(
        self,
        loader: ModuleLoader,
        dispatcher: RouteDispatcher,
        aggregator: EndpointAggregator,
        cache: TTLCache,
        settings: Settings,
    ):
        self.loader = loader
        self.dispatcher = dispatcher
        self.aggregator = aggregator
        self.cache = cache
        self.settings = settings
        self.records: List[ModuleRecord] = []
        self._started = False

    @property
    def completed(self) -> bool:
        return self.dispatcher.mounted

    def run(self, target: Union[FastAPI, APIRouter]) -> List[ModuleRecord]:
        """
        Load every module, register discovery, mount on `target`.

        Raises:
            RuntimeError:   run() was already called.
            BootstrapError: any module failed; nothing has been mounted.
        """
        if self._started:
            raise RuntimeError("Router bootstrap has already run")
        self._started = True

        self.records = [ModuleRecord(identifier=i) for i in self.loader.discover()]
        logger.info(
            "Loading %d endpoint modules from %s",
            len(self.records),
            self.loader.base_dir,
        )
        for record in self.records:
            self._load(record)

        self._register_discovery()
        self.dispatcher.mount(target, metadata=self.aggregator.by_key())
        logger.info(
            "Bootstrap complete: %d modules, %d documented endpoints",
            len(self.records),
            len(self.aggregator),
        )
        return self.records

    def _load(self, record: ModuleRecord) -> None:
        loaded = self.loader.load(record.identifier)
        descriptors = validate_descriptors(record.identifier, loaded.endpoints)

        view = ModuleDispatcher(self.dispatcher, record.identifier)
        ctx = ModuleContext(
            identifier=record.identifier,
            dispatcher=view,
            cache=self.cache,
            aggregator=self.aggregator,
            settings=self.settings,
        )
        try:
            loaded.register(ctx)
        except BootstrapError:
            raise
        except Exception as exc:
            raise ModuleLoadError(
                record.identifier,
                f"register() failed: {type(exc).__name__}: {exc}",
            ) from exc

        check_consistency(record.identifier, descriptors, view.registered)
        self.aggregator.register(descriptors, module=record.identifier)

        record.descriptors = descriptors
        record.registered = list(view.registered)
        record.state = ModuleState.LOADED
        logger.info(
            "Loaded endpoint module '%s' (%d routes)",
            record.identifier,
            len(descriptors),
        )

    def _register_discovery(self) -> None:
        path = self.settings.discovery_path
        # The index route belongs to the registry; a module may not claim it
        claimed = self.dispatcher.overlapping(path, "GET")
        if claimed:
            raise ModuleContractError(
                claimed[0].owner or "<anonymous>",
                f"{claimed[0].method} {path} is reserved for the discovery document",
                context={"discovery_path": path},
            )

        aggregator = self.aggregator

        @handler_boundary(message="Could not build the API index")
        async def api_index() -> AggregatedDocument:
            return aggregator.snapshot()

        self.dispatcher.register_route("GET", path, api_index, owner="discovery")

    def module(self, identifier: str) -> Optional[ModuleRecord]:
        for record in self.records:
            if record.identifier == identifier:
                return record
        return None
