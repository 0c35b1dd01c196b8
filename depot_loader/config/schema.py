"""Pydantic schemas for project and manifest documents."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator

from ..errors import ConfigError

_TREE_HASH_RE = re.compile(r"^[0-9a-fA-F]{40}$")

SUPPORTED_MANIFEST_MAJORS = ("1", "2")


@dataclass(frozen=True)
class PathEntry:
    """Where one package version lives: a local path or a content hash."""

    uuid: UUID | None
    name_hint: str
    explicit_path: str | None = None
    tree_hash: str | None = None
    version: str | None = None


class ProjectConfig(BaseModel):
    """Project document (Project.toml)."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(None, description="Project name")
    uuid: UUID | None = Field(None, description="Project UUID, present for packages")
    version: str | None = Field(None, description="Project version, informational")
    manifest: str | None = Field(None, description="Manifest file name override")
    deps: dict[str, UUID] = Field(default_factory=dict, description="Direct dependencies, name -> UUID")

    def roots(self) -> dict[str, UUID]:
        """Names importable from the project's top-level context.

        Raises:
            ConfigError: The project's own name is also listed as a dependency
                with a different UUID
        """
        roots = dict(self.deps)
        if self.name is not None and self.uuid is not None:
            existing = roots.get(self.name)
            if existing is not None and existing != self.uuid:
                raise ConfigError(
                    f"Name '{self.name}' maps to both {self.uuid} (project) and {existing} (deps)"
                )
            roots[self.name] = self.uuid
        return roots


class ManifestEntry(BaseModel):
    """One manifest stanza."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    uuid: UUID
    deps: dict[str, UUID] | list[str] = Field(default_factory=dict)
    path: str | None = None
    git_tree_sha1: str | None = Field(None, alias="git-tree-sha1")
    version: str | None = None

    @field_validator("git_tree_sha1")
    @classmethod
    def _check_tree_hash(cls, value: str | None) -> str | None:
        if value is not None and not _TREE_HASH_RE.match(value):
            raise ValueError(f"git-tree-sha1 must be 40 hex characters, got {value!r}")
        return value.lower() if value is not None else None


class ManifestConfig(BaseModel):
    """Manifest document (Manifest.toml), both format 1 and format 2."""

    manifest_format: str = "1.0"
    stanzas: dict[str, list[ManifestEntry]] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> ManifestConfig:
        """Build from a parsed manifest mapping.

        Format 2 keeps the stanzas under a ``deps`` table next to a
        ``manifest_format`` key. Format 1 has the stanzas at top level.
        """
        manifest_format = str(data.get("manifest_format", "1.0"))
        major = manifest_format.split(".")[0]
        if major not in SUPPORTED_MANIFEST_MAJORS:
            raise ConfigError(f"Unsupported manifest format: {manifest_format}")

        if major == "2":
            raw = data.get("deps", {})
        else:
            raw = {k: v for k, v in data.items() if isinstance(v, (dict, list))}

        if not isinstance(raw, dict):
            raise ConfigError("Manifest stanzas must be a table of package names")

        stanzas: dict[str, list[Any]] = {}
        for name, value in raw.items():
            # A single table is accepted as shorthand for a one-element array
            stanzas[name] = value if isinstance(value, list) else [value]

        try:
            return cls(manifest_format=manifest_format, stanzas=stanzas)
        except ValidationError as e:
            raise ConfigError(f"Invalid manifest: {e}") from e

    def _unique_uuid_for(self, name: str, requester: str) -> UUID:
        entries = self.stanzas.get(name, [])
        if len(entries) != 1:
            problem = "missing from" if not entries else "ambiguous in"
            raise ConfigError(f"Dependency '{name}' of '{requester}' is {problem} the manifest; list deps by UUID")
        return entries[0].uuid

    def dependency_graph(self) -> dict[UUID, dict[str, UUID]]:
        """Map each stanza's UUID to its declared dependencies.

        Stanzas may share a name with different UUIDs; the graph is keyed by
        UUID so this is never ambiguous. Name-list deps are expanded through
        the unique stanza of each name.
        """
        graph: dict[UUID, dict[str, UUID]] = {}
        for name, entries in self.stanzas.items():
            for entry in entries:
                if not entry.deps:
                    continue
                if isinstance(entry.deps, list):
                    graph[entry.uuid] = {dep: self._unique_uuid_for(dep, name) for dep in entry.deps}
                else:
                    graph[entry.uuid] = dict(entry.deps)
        return graph

    def path_entries(self) -> dict[UUID, PathEntry]:
        """One PathEntry per stanza, keyed by UUID."""
        paths: dict[UUID, PathEntry] = {}
        for name, entries in self.stanzas.items():
            for entry in entries:
                if entry.uuid in paths:
                    raise ConfigError(f"UUID {entry.uuid} appears in more than one manifest stanza")
                paths[entry.uuid] = PathEntry(
                    uuid=entry.uuid,
                    name_hint=name,
                    explicit_path=entry.path,
                    tree_hash=entry.git_tree_sha1,
                    version=entry.version,
                )
        return paths


def parse_project(data: dict[str, Any]) -> ProjectConfig:
    """Validate a parsed project mapping.

    Raises:
        ConfigError: The document has the wrong shape
    """
    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid project: {e}") from e
