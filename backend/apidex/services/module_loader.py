"""
Apidex Backend — Endpoint Module Loader
========================================

What:  Discovers endpoint module files and imports them from an absolute
       base directory.
Why:   "Add a feature by dropping in a file" without editing a central list,
       while keeping the load order deterministic and the resolution
       independent of the process working directory.
How:   discover() scans the directory once and returns identifiers (file
       stems) sorted lexicographically. load() imports one file through
       importlib with an explicit file location.

Module File Rules:
    - *.py files directly inside the base directory
    - names starting with "_" (e.g. __init__.py) are skipped
    - the file must define ENDPOINTS and a callable register(ctx)
"""

import importlib.util
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, List

from apidex.exceptions import ModuleContractError, ModuleLoadError

logger = logging.getLogger(__name__)

# Namespace under which loaded endpoint modules appear in sys.modules
MODULE_NAMESPACE = "apidex_endpoints"


@dataclass
class LoadedModule:
    """Raw exports of an imported endpoint module, before validation."""

    identifier: str
    path: Path
    endpoints: Any
    register: Callable[..., Any]
    module: ModuleType


class ModuleLoader:
    """
    Resolves endpoint module identifiers against an absolute directory.

    Raises:
        ValueError: if base_dir is relative.
    """

    def __init__(self, base_dir: Path):
        base_dir = Path(base_dir)
        if not base_dir.is_absolute():
            raise ValueError(
                f"Endpoint module directory must be absolute, got '{base_dir}'"
            )
        self.base_dir = base_dir

    def discover(self) -> List[str]:
        """
        List module identifiers in load order.

        Raises:
            ModuleLoadError: if the directory does not exist.
        """
        if not self.base_dir.is_dir():
            raise ModuleLoadError(
                identifier=str(self.base_dir),
                message="Endpoint module directory does not exist",
            )
        identifiers = sorted(
            p.stem
            for p in self.base_dir.glob("*.py")
            if p.is_file() and not p.name.startswith("_")
        )
        logger.debug("Discovered %d endpoint modules in %s", len(identifiers), self.base_dir)
        return identifiers

    def path_for(self, identifier: str) -> Path:
        return self.base_dir / f"{identifier}.py"

    def load(self, identifier: str) -> LoadedModule:
        """
        Import one endpoint module and pull out its exports.

        Raises:
            ModuleLoadError:     the file is missing or raised while importing.
            ModuleContractError: ENDPOINTS or register() is missing.
        """
        path = self.path_for(identifier)
        if not path.is_file():
            raise ModuleLoadError(identifier, f"Module file not found: {path}")

        module_name = f"{MODULE_NAMESPACE}.{identifier}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ModuleLoadError(identifier, f"Cannot build an import spec for {path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            sys.modules.pop(module_name, None)
            raise ModuleLoadError(
                identifier,
                f"Import failed: {type(exc).__name__}: {exc}",
                context={"path": str(path)},
            ) from exc

        if not hasattr(module, "ENDPOINTS"):
            raise ModuleContractError(identifier, "Module does not export ENDPOINTS")
        register = getattr(module, "register", None)
        if not callable(register):
            raise ModuleContractError(identifier, "Module does not define a callable register(ctx)")

        return LoadedModule(
            identifier=identifier,
            path=path,
            endpoints=module.ENDPOINTS,
            register=register,
            module=module,
        )
