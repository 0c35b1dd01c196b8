"""Loader exceptions.

All of these abort only the import that triggered them. None of them leaves a
partial entry in the loaded-package table.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .identity import PackageIdentity


class LoaderError(Exception):
    """Base class for all loader errors."""

    pass


class ConfigError(LoaderError):
    """Raised when a project or manifest document is malformed or contradictory."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class UnresolvedNameError(LoaderError):
    """Raised when no environment maps a name in the requesting context."""

    def __init__(self, name: str, requester: PackageIdentity, searched: list[str] | None = None):
        self.name = name
        self.requester = requester
        self.searched = searched or []

        lines = [f"Package '{name}' is not resolvable from {requester}"]
        if self.searched:
            lines.append("")
            lines.append("Environments searched:")
            lines.extend(f"  {i}. {where}" for i, where in enumerate(self.searched, 1))
        lines.append("")
        lines.append(f"Add '{name}' to the dependencies of the requesting project or package.")
        super().__init__("\n".join(lines))


class PackageNotFoundError(LoaderError):
    """Raised when an identity resolves but no entry file exists for it."""

    def __init__(self, identity: PackageIdentity):
        self.identity = identity
        super().__init__(
            f"Package {identity} is required but does not seem to be installed.\n\n"
            f"Suggestions:\n"
            f"  - Instantiate the environment to fetch its dependencies\n"
            f"  - Check the 'path' entry of the manifest for a local checkout"
        )


class PackageLoadError(LoaderError):
    """Raised in a waiting thread when another thread failed to load the package."""

    def __init__(self, identity: PackageIdentity):
        self.identity = identity
        super().__init__(f"Loading {identity} failed in another thread")
