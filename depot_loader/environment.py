"""Environments: one layer of name resolution.

An explicit environment is backed by a project file and its manifest. A
package-directory environment is a plain directory of packages with no
project file of its own. Both answer the same two questions: which identity a
name denotes for a given requester, and where an identity's files live.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC
from abc import abstractmethod
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any
from uuid import UUID

from .config.loader import find_project_file
from .config.loader import load_project
from .config.loader import read_project_documents
from .config.schema import ManifestConfig
from .config.schema import PathEntry
from .config.schema import parse_project
from .errors import ConfigError
from .identity import PackageIdentity

logger = logging.getLogger(__name__)


class BaseEnvironment(ABC):
    """Interface shared by every environment kind."""

    @abstractmethod
    def resolve(self, requester: PackageIdentity, name: str) -> PackageIdentity | None:
        """Return the identity `name` denotes when imported from `requester`, or None."""

    @abstractmethod
    def path_entry(self, identity: PackageIdentity) -> PathEntry | None:
        """Return where this environment says `identity` lives, or None."""

    @property
    @abstractmethod
    def base_dir(self) -> Path:
        """Directory that relative paths in this environment are anchored to."""

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable kind label."""


class Environment(BaseEnvironment):
    """Explicit environment built from a project document and a manifest document.

    Holds three read-only maps:
    - roots: names importable from the project's top-level context
    - graph: for each package UUID, the names it may import
    - paths: for each package UUID, where its source lives
    """

    def __init__(
        self,
        roots: Mapping[str, UUID],
        graph: Mapping[UUID, Mapping[str, UUID]],
        paths: Mapping[UUID, PathEntry],
        base_dir: Path,
        project_identity: PackageIdentity | None = None,
    ):
        self.roots = MappingProxyType(dict(roots))
        self.graph = MappingProxyType({k: MappingProxyType(dict(v)) for k, v in graph.items()})
        self.paths = MappingProxyType(dict(paths))
        self._base_dir = base_dir
        self.project_identity = project_identity

    @classmethod
    def from_documents(
        cls,
        project_doc: dict[str, Any] | None,
        manifest_doc: dict[str, Any] | None,
        base_dir: Path,
    ) -> Environment:
        """Build an environment from already-parsed documents.

        Either document may be None, meaning it does not exist.

        Raises:
            ConfigError: A document is malformed or contradictory
        """
        project = parse_project(project_doc or {})
        manifest = ManifestConfig.from_document(manifest_doc or {})

        roots = project.roots()
        graph = manifest.dependency_graph()
        paths = manifest.path_entries()

        project_identity = None
        if project.name is not None:
            project_identity = PackageIdentity(project.name, project.uuid)
            if project.uuid is not None:
                # The project's own package loads from the project directory
                paths.setdefault(project.uuid, PathEntry(uuid=project.uuid, name_hint=project.name, explicit_path="."))

        return cls(roots, graph, paths, base_dir, project_identity)

    @classmethod
    def from_directory(cls, path: Path) -> Environment:
        """Read the project and manifest files for `path` and build an environment."""
        project_doc, manifest_doc, base_dir = read_project_documents(path)
        try:
            return cls.from_documents(project_doc, manifest_doc, base_dir.resolve())
        except ConfigError as e:
            if e.path is not None:
                raise
            raise ConfigError(str(e), path=base_dir) from e

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _is_root_context(self, requester: PackageIdentity) -> bool:
        if requester.uuid is None:
            return True
        return self.project_identity is not None and self.project_identity.uuid == requester.uuid

    def resolve(self, requester: PackageIdentity, name: str) -> PackageIdentity | None:
        if self._is_root_context(requester):
            uuid = self.roots.get(name)
            if uuid is not None:
                return PackageIdentity(name, uuid)
            # A nameless-UUID project is still importable by its own name
            if self.project_identity is not None and self.project_identity.uuid is None:
                if self.project_identity.name == name:
                    return self.project_identity
            return None

        deps = self.graph.get(requester.uuid)
        if deps is None:
            return None
        uuid = deps.get(name)
        return PackageIdentity(name, uuid) if uuid is not None else None

    def path_entry(self, identity: PackageIdentity) -> PathEntry | None:
        if identity.uuid is not None:
            return self.paths.get(identity.uuid)
        if self.project_identity is not None and self.project_identity == identity:
            return PathEntry(uuid=None, name_hint=identity.name, explicit_path=".")
        return None

    def describe(self) -> str:
        return "project"

    def __repr__(self) -> str:
        return f"Environment({self._base_dir}, roots={len(self.roots)}, packages={len(self.paths)})"


class PackageDirectoryEnvironment(BaseEnvironment):
    """A directory of packages without a project file.

    Each child ``X/src/X.py`` or loose ``X.py`` is importable as ``X`` from
    the top-level context. A package's identity comes from ``X/Project.toml``
    when there is one; otherwise it is a nil-UUID identity keyed by name.
    """

    def __init__(self, directory: Path, extension: str = ".py"):
        self.directory = directory
        self.extension = extension
        self._lock = threading.Lock()
        self._packages: dict[str, tuple[PackageIdentity, Path, dict[str, UUID]]] | None = None

    @property
    def base_dir(self) -> Path:
        return self.directory

    def _scan(self) -> dict[str, tuple[PackageIdentity, Path, dict[str, UUID]]]:
        with self._lock:
            if self._packages is None:
                self._packages = self._read_packages()
            return self._packages

    def _read_packages(self) -> dict[str, tuple[PackageIdentity, Path, dict[str, UUID]]]:
        packages: dict[str, tuple[PackageIdentity, Path, dict[str, UUID]]] = {}
        if not self.directory.is_dir():
            return packages

        for child in sorted(self.directory.iterdir()):
            if child.is_dir():
                name = child.name
                if not (child / "src" / f"{name}{self.extension}").is_file():
                    continue
                location = child
            elif child.is_file() and child.suffix == self.extension:
                name = child.stem
                if name in packages:
                    continue
                location = child
            else:
                continue

            uuid = None
            deps: dict[str, UUID] = {}
            project_file = find_project_file(child) if child.is_dir() else None
            if project_file is not None:
                project = load_project(project_file)
                if project.name is not None and project.name != name:
                    logger.warning(f"Project name '{project.name}' does not match directory {child}, skipping")
                    continue
                uuid = project.uuid
                deps = dict(project.deps)

            packages[name] = (PackageIdentity(name, uuid), location, deps)

        logger.debug(f"[pkg:config] {self.directory}: {len(packages)} packages")
        return packages

    def resolve(self, requester: PackageIdentity, name: str) -> PackageIdentity | None:
        packages = self._scan()
        if requester.uuid is None:
            found = packages.get(name)
            return found[0] if found else None

        # Only the package's own project file says what it may import
        for identity, _location, deps in packages.values():
            if identity == requester:
                uuid = deps.get(name)
                return PackageIdentity(name, uuid) if uuid is not None else None
        return None

    def path_entry(self, identity: PackageIdentity) -> PathEntry | None:
        found = self._scan().get(identity.name)
        if found is None or found[0] != identity:
            return None
        found_identity, location, _deps = found
        return PathEntry(
            uuid=found_identity.uuid,
            name_hint=identity.name,
            explicit_path=str(location),
        )

    def describe(self) -> str:
        return "packages"

    def __repr__(self) -> str:
        return f"PackageDirectoryEnvironment({self.directory})"
