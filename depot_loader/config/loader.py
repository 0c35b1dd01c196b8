"""Reading project and manifest files from disk.

TOML parsing itself is delegated to tomllib; this module only decides which
files to read and turns their contents into typed configs.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from ..errors import ConfigError
from .schema import ProjectConfig
from .schema import parse_project

logger = logging.getLogger(__name__)

PROJECT_NAMES = ("Project.toml", "PkgProject.toml")
MANIFEST_NAMES = ("Manifest.toml", "PkgManifest.toml")


def read_toml(path: Path) -> dict[str, Any] | None:
    """Parse a TOML file, or return None if it does not exist.

    Raises:
        ConfigError: The file exists but is not valid TOML
    """
    if not path.is_file():
        return None
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML: {e}", path=path) from e


def find_project_file(path: Path) -> Path | None:
    """Return the project file for a directory, or the path itself if it is one."""
    if path.is_file():
        return path if path.name in PROJECT_NAMES else None
    for name in PROJECT_NAMES:
        candidate = path / name
        if candidate.is_file():
            return candidate
    return None


def find_manifest_file(project_file: Path, project: ProjectConfig | None = None) -> Path | None:
    """Return the manifest next to a project file, honoring a ``manifest`` override."""
    directory = project_file.parent
    if project is not None and project.manifest:
        candidate = directory / project.manifest
        return candidate if candidate.is_file() else None
    for name in MANIFEST_NAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def search_project_upwards(start: Path) -> Path | None:
    """Walk from start towards the filesystem root looking for a project file.

    Returns:
        The directory holding the first project file found, or None
    """
    current = start.resolve()
    for directory in [current, *current.parents]:
        if find_project_file(directory) is not None:
            return directory
    return None


def load_project(project_file: Path) -> ProjectConfig:
    data = read_toml(project_file) or {}
    try:
        return parse_project(data)
    except ConfigError as e:
        raise ConfigError(str(e), path=project_file) from e


def read_project_documents(path: Path) -> tuple[dict[str, Any] | None, dict[str, Any] | None, Path]:
    """Read the raw project and manifest mappings for an environment directory.

    Args:
        path: Environment directory or project file

    Returns:
        Tuple of (project mapping or None, manifest mapping or None, base directory)
    """
    project_file = find_project_file(path)
    if project_file is None:
        base_dir = path if path.is_dir() else path.parent
        logger.debug(f"[pkg:config] no project file in {base_dir}")
        return (None, None, base_dir)

    project_doc = read_toml(project_file)
    manifest_override = None
    if project_doc and isinstance(project_doc.get("manifest"), str):
        manifest_override = load_project(project_file)
    manifest_file = find_manifest_file(project_file, manifest_override)
    manifest_doc = read_toml(manifest_file) if manifest_file is not None else None

    logger.debug(f"[pkg:config] project={project_file} manifest={manifest_file}")
    return (project_doc, manifest_doc, project_file.parent)
