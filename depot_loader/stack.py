"""Environment stack - ordered environments, first match wins.

Load path syntax:
- ``@``       the active project (skipped when no project is active)
- ``@name``   a shared environment, the first ``<depot>/environments/<name>`` that exists
- otherwise   a filesystem path: a project directory, a project file, or a
              plain directory of packages
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from collections.abc import Iterator
from collections.abc import Sequence
from pathlib import Path

from .config.loader import find_project_file
from .environment import BaseEnvironment
from .environment import Environment
from .environment import PackageDirectoryEnvironment
from .identity import PackageIdentity

logger = logging.getLogger(__name__)


class EnvironmentStack:
    """Ordered, immutable sequence of environments."""

    def __init__(self, environments: Iterable[BaseEnvironment]):
        self.environments: tuple[BaseEnvironment, ...] = tuple(environments)

    @classmethod
    def from_load_path(cls, paths: Iterable[Path]) -> EnvironmentStack:
        """Build one environment per directory, in order.

        Directories (or files) holding a project file become explicit
        environments; any other directory becomes a package directory.
        """
        environments: list[BaseEnvironment] = []
        for path in paths:
            if find_project_file(path) is not None:
                environments.append(Environment.from_directory(path))
            elif path.is_dir():
                environments.append(PackageDirectoryEnvironment(path.resolve()))
            else:
                logger.debug(f"[pkg:stack] skipping {path} (not an environment)")
        return cls(environments)

    def resolve(self, requester: PackageIdentity, name: str) -> PackageIdentity | None:
        """Probe each environment in order; the first that maps the name wins."""
        for env in self.environments:
            identity = env.resolve(requester, name)
            if identity is not None:
                logger.debug(f"[pkg:resolve] {name} from {requester} -> {identity} ({env.base_dir})")
                return identity
        logger.debug(f"[pkg:resolve] {name} from {requester} -> unresolved")
        return None

    def describe(self) -> list[str]:
        return [f"{env.describe()}: {env.base_dir}" for env in self.environments]

    def __iter__(self) -> Iterator[BaseEnvironment]:
        return iter(self.environments)

    def __len__(self) -> int:
        return len(self.environments)

    def __repr__(self) -> str:
        return f"EnvironmentStack({len(self.environments)} environments)"


def expand_load_path(
    entries: Sequence[str],
    active_project: Path | None,
    depots: Sequence[Path],
) -> list[Path]:
    """Turn load path entries into concrete environment paths.

    Args:
        entries: Load path entries in precedence order
        active_project: Active project directory, used for ``@``
        depots: Depot directories searched for ``@name`` environments

    Returns:
        Existing paths in precedence order, without duplicates
    """
    expanded: list[Path] = []
    for entry in entries:
        path = _expand_entry(entry, active_project, depots)
        if path is None:
            continue
        if not path.exists():
            logger.debug(f"[pkg:stack] load path entry {entry!r} -> {path} does not exist, skipping")
            continue
        path = path.resolve()
        if path not in expanded:
            expanded.append(path)
    return expanded


def _expand_entry(entry: str, active_project: Path | None, depots: Sequence[Path]) -> Path | None:
    if entry == "@":
        return active_project
    if entry.startswith("@"):
        env_name = entry[1:]
        for depot in depots:
            candidate = depot / "environments" / env_name
            if candidate.exists():
                return candidate
        logger.debug(f"[pkg:stack] named environment {entry!r} not found in any depot")
        return None
    return Path(entry).expanduser()
