"""Path resolver - turn a resolved identity into an entry source file.

Two ways to find a package:
1. Explicit path from the manifest (local checkouts, development overrides)
2. Content-addressed lookup: <depot>/packages/<name>/<slug>/src/<name><ext>

An explicit path always wins; when it is set the depots are never consulted.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from .environment import BaseEnvironment
from .identity import PackageIdentity
from .identity import version_slug
from .stack import EnvironmentStack

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".py"


class PathResolver:
    """Locate entry files for identities using environments and depots."""

    def __init__(self, depots: Sequence[Path], extension: str = DEFAULT_EXTENSION):
        """Initialize with storage roots.

        Args:
            depots: Depot directories, searched in order for installed packages
            extension: Source file extension of entry files
        """
        self.depots = tuple(depots)
        self.extension = extension

    def entry_file(self, package_dir: Path, name: str) -> Path:
        return package_dir / "src" / f"{name}{self.extension}"

    def locate(self, identity: PackageIdentity, environment: BaseEnvironment) -> Path | None:
        """Return the entry file for `identity` according to one environment.

        Returns:
            Path to an existing entry file, or None
        """
        entry = environment.path_entry(identity)
        if entry is None:
            return None

        if entry.explicit_path is not None:
            target = environment.base_dir / entry.explicit_path
            if target.is_dir():
                candidate = self.entry_file(target, entry.name_hint)
                if candidate.is_file():
                    logger.debug(f"[pkg:locate] {identity} -> {candidate} (path)")
                    return candidate.resolve()
            elif target.is_file():
                logger.debug(f"[pkg:locate] {identity} -> {target} (path)")
                return target.resolve()
            logger.debug(f"[pkg:locate] {identity}: explicit path {target} has no entry file")
            return None

        if entry.tree_hash is None or entry.uuid is None:
            logger.debug(f"[pkg:locate] {identity}: manifest entry has neither path nor tree hash")
            return None

        slug = version_slug(entry.uuid, entry.tree_hash)
        for depot in self.depots:
            candidate = self.entry_file(depot / "packages" / entry.name_hint / slug, entry.name_hint)
            if candidate.is_file():
                logger.debug(f"[pkg:locate] {identity} -> {candidate} (depot)")
                return candidate
        logger.debug(f"[pkg:locate] {identity}: slug {slug} not installed in {len(self.depots)} depots")
        return None

    def locate_in_stack(self, identity: PackageIdentity, stack: EnvironmentStack) -> Path | None:
        """Return the first entry file found, probing environments in stack order."""
        for env in stack:
            path = self.locate(identity, env)
            if path is not None:
                return path
        return None

    def __repr__(self) -> str:
        return f"PathResolver(depots={len(self.depots)}, extension={self.extension!r})"
