"""Evaluation collaborator - turns an entry file into a loaded handle.

Loading is split in two phases so the handle can be registered before the
package body runs:

1. create(path, identity) makes an empty handle
2. execute(handle, loader) runs the package body into it

SourceFileEvaluator is the default: it loads Python source through importlib
and registers each module in sys.modules under a key derived from the full
identity (see module_name_for), never under the bare package name, because
package names are not globally unique.
"""

from __future__ import annotations

import importlib.machinery
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING
from typing import Any
from typing import Protocol

from .identity import MAIN
from .identity import PackageIdentity

if TYPE_CHECKING:
    from .engine import ResolutionEngine

logger = logging.getLogger(__name__)

IDENTITY_ATTR = "__package_identity__"

# Loaded packages live under this prefix in sys.modules
MODULE_PREFIX = "depot_loader.packages"


def module_name_for(identity: PackageIdentity) -> str:
    """Return the sys.modules key for a package identity.

    Keys include the UUID so that unrelated packages sharing a name never
    collide with each other or with regular importable modules.
    """
    if identity.uuid is None:
        return f"{MODULE_PREFIX}.{identity.name}"
    return f"{MODULE_PREFIX}.{identity.name}_{identity.uuid.hex}"


class Evaluator(Protocol):
    """Protocol for evaluation collaborators."""

    def create(self, path: Path, identity: PackageIdentity) -> Any:
        """Make a new, empty handle for the package at `path`. Must not return None."""
        ...

    def execute(self, handle: Any, loader: ResolutionEngine) -> None:
        """Run the package body into `handle`. Nested imports go through `loader`."""
        ...

    def include(self, path: Path, namespace: dict[str, Any], loader: ResolutionEngine) -> None:
        """Run the file at `path` inside an existing namespace. Never memoized."""
        ...


class SourceFileEvaluator:
    """Evaluate Python entry files into modules registered under unique names.

    Every module namespace gets two callables:
    - require(name): import a package as seen from this module, bound under `name`
    - include(path): run a file relative to the including file, in this namespace
    """

    def create(self, path: Path, identity: PackageIdentity) -> ModuleType:
        module = _module_from_file(module_name_for(identity), path)
        setattr(module, IDENTITY_ATTR, identity)
        return module

    def execute(self, handle: ModuleType, loader: ResolutionEngine) -> None:
        identity = getattr(handle, IDENTITY_ATTR)
        path = Path(handle.__file__)  # type: ignore[arg-type]
        self.bind_loader(vars(handle), identity, path.parent, loader)
        logger.debug(f"[pkg:load] evaluating {identity} as {handle.__name__}")

        sys.modules[handle.__name__] = handle
        try:
            handle.__spec__.loader.exec_module(handle)  # type: ignore[union-attr]
        except BaseException:
            sys.modules.pop(handle.__name__, None)
            raise

    def include(self, path: Path, namespace: dict[str, Any], loader: ResolutionEngine) -> None:
        identity = namespace.get(IDENTITY_ATTR, MAIN)
        previous = namespace.get("include")
        # Includes inside the included file are relative to that file
        namespace["include"] = lambda relpath: loader.include(relpath, path.parent, namespace)
        try:
            code = compile(path.read_text(encoding="utf-8"), str(path), "exec")
            exec(code, namespace)
        finally:
            if previous is None:
                namespace.pop("include", None)
            else:
                namespace["include"] = previous
        logger.debug(f"[pkg:include] {path} into {identity}")

    def bind_loader(
        self,
        namespace: dict[str, Any],
        identity: PackageIdentity,
        directory: Path,
        loader: ResolutionEngine,
    ) -> None:
        """Install `require` and `include` into a namespace for `identity`."""
        namespace[IDENTITY_ATTR] = identity
        namespace["require"] = lambda name: loader.import_package(identity, name, namespace)
        namespace["include"] = lambda relpath: loader.include(relpath, directory, namespace)

    def run_script(self, path: Path, loader: ResolutionEngine) -> dict[str, Any]:
        """Run a script as top-level code and return its namespace.

        The script runs as ``__main__``; the previous ``__main__`` module is
        restored afterwards.
        """
        path = path.resolve()
        module = _module_from_file("__main__", path)
        self.bind_loader(vars(module), MAIN, path.parent, loader)

        previous = sys.modules.get("__main__")
        sys.modules["__main__"] = module
        try:
            module.__spec__.loader.exec_module(module)  # type: ignore[union-attr]
        finally:
            if previous is None:
                sys.modules.pop("__main__", None)
            else:
                sys.modules["__main__"] = previous
        return vars(module)

    def __repr__(self) -> str:
        return "SourceFileEvaluator()"


def _module_from_file(module_name: str, path: Path) -> ModuleType:
    # Explicit loader so entry files with a non-.py extension load as source too
    source_loader = importlib.machinery.SourceFileLoader(module_name, str(path))
    spec = importlib.util.spec_from_file_location(module_name, path, loader=source_loader)
    if spec is None:
        raise ImportError(f"Cannot create module spec for: {path}")
    return importlib.util.module_from_spec(spec)
