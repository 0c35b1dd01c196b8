"""Resolution engine - the entry point for contextual imports.

Import flow:
1. Resolve (requester, name) to an identity through the environment stack
2. Return the loaded handle if the identity was loaded before
3. Otherwise locate the entry file, create and execute a handle, record it
4. Bind the handle under `name` in the requester's namespace
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from .errors import PackageNotFoundError
from .errors import UnresolvedNameError
from .evaluator import IDENTITY_ATTR
from .evaluator import Evaluator
from .identity import PackageIdentity
from .locator import PathResolver
from .stack import EnvironmentStack
from .table import LoadedPackageTable

logger = logging.getLogger(__name__)


class ResolutionEngine:
    """Resolve, locate and load packages, each at most once per process.

    The table is injected so its lifetime is explicit: create it once at
    process start and never reset it.
    """

    def __init__(
        self,
        stack: EnvironmentStack,
        resolver: PathResolver,
        evaluator: Evaluator,
        table: LoadedPackageTable | None = None,
    ):
        self.stack = stack
        self.resolver = resolver
        self.evaluator = evaluator
        self.table = table if table is not None else LoadedPackageTable()
        self._origins_lock = threading.Lock()
        self._origins: dict[int, tuple[PackageIdentity, Path]] = {}

    def identify_package(self, requester: PackageIdentity, name: str) -> PackageIdentity:
        """Return the identity `name` denotes when imported from `requester`.

        Raises:
            UnresolvedNameError: No environment maps the name for this requester
        """
        identity = self.stack.resolve(requester, name)
        if identity is None:
            raise UnresolvedNameError(name, requester, self.stack.describe())
        return identity

    def locate_package(self, identity: PackageIdentity) -> Path:
        """Return the entry file of `identity`.

        Raises:
            PackageNotFoundError: No environment yields an existing entry file
        """
        path = self.resolver.locate_in_stack(identity, self.stack)
        if path is None:
            raise PackageNotFoundError(identity)
        return path

    def require(self, identity: PackageIdentity) -> Any:
        """Load `identity` if needed and return its handle."""
        located: list[Path] = []

        def create() -> Any:
            path = self.locate_package(identity)
            located.append(path)
            logger.info(f"[pkg:load] loading {identity} from {path}")
            return self.evaluator.create(path, identity)

        def execute(handle: Any) -> None:
            self.evaluator.execute(handle, self)
            with self._origins_lock:
                self._origins[id(handle)] = (identity, located[0])

        return self.table.load_once(identity, create, execute)

    def import_package(
        self,
        requester: PackageIdentity,
        name: str,
        namespace: dict[str, Any] | None = None,
    ) -> Any:
        """Import `name` as seen from `requester`.

        Args:
            requester: Identity of the importing package (MAIN for top-level code)
            name: Package name as written in the importing code
            namespace: Requester's namespace; the handle is bound there under `name`

        Returns:
            The package handle, identical for every import of the same identity
        """
        identity = self.identify_package(requester, name)
        handle = self.require(identity)
        if namespace is not None:
            namespace[name] = handle
        return handle

    def include(self, path: str | Path, current_dir: Path, namespace: dict[str, Any]) -> None:
        """Run a file relative to `current_dir` inside `namespace`, every time."""
        target = Path(path)
        if not target.is_absolute():
            target = current_dir / target
        if not target.is_file():
            raise FileNotFoundError(f"Included file not found: {target}")
        self.evaluator.include(target, namespace, self)

    def identify(self, handle: Any) -> PackageIdentity | None:
        """Return the identity a handle was loaded as."""
        with self._origins_lock:
            origin = self._origins.get(id(handle))
        if origin is not None:
            return origin[0]
        return getattr(handle, IDENTITY_ATTR, None)

    def pathof(self, handle: Any) -> Path | None:
        """Return the entry file a loaded handle came from."""
        with self._origins_lock:
            origin = self._origins.get(id(handle))
        return origin[1] if origin is not None else None

    def loaded_packages(self) -> list[tuple[PackageIdentity, Any]]:
        return list(self.table.items())  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return f"ResolutionEngine({len(self.stack)} environments, {len(self.table)} loaded)"
