"""Process-wide loader settings.

Sources, lowest to highest precedence:
1. Built-in defaults
2. User settings file (~/.depot_loader/settings.yaml)
3. Environment variables (DEPOT_LOADER_LOAD_PATH, DEPOT_LOADER_DEPOT_PATH,
   DEPOT_LOADER_PROJECT)

Path-list variables are split on os.pathsep. An empty element splices the
defaults in at that position, so ``DEPOT_LOADER_LOAD_PATH="/extra:"`` means
"/extra, then the defaults".
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any

import yaml

from .config.loader import search_project_upwards

logger = logging.getLogger(__name__)

LOAD_PATH_VAR = "DEPOT_LOADER_LOAD_PATH"
DEPOT_PATH_VAR = "DEPOT_LOADER_DEPOT_PATH"
PROJECT_VAR = "DEPOT_LOADER_PROJECT"

DEFAULT_LOAD_PATH = ["@", "@default"]


def default_depot_path() -> list[Path]:
    return [Path.home() / ".depot_loader"]


def default_settings_file() -> Path:
    return Path.home() / ".depot_loader" / "settings.yaml"


@dataclass
class LoaderSettings:
    """Resolved settings for one process."""

    load_path: list[str] = field(default_factory=lambda: list(DEFAULT_LOAD_PATH))
    depot_path: list[Path] = field(default_factory=default_depot_path)
    active_project: Path | None = None

    @classmethod
    def load(
        cls,
        settings_file: Path | None = None,
        environ: dict[str, str] | None = None,
        cwd: Path | None = None,
    ) -> LoaderSettings:
        """Build settings from the settings file and environment variables.

        Args:
            settings_file: YAML settings file (default: ~/.depot_loader/settings.yaml)
            environ: Environment mapping (default: os.environ)
            cwd: Directory used for ``@.`` project search (default: current directory)
        """
        environ = dict(os.environ) if environ is None else environ
        cwd = cwd or Path.cwd()
        file_settings = _read_settings_file(settings_file or default_settings_file())

        load_path = list(DEFAULT_LOAD_PATH)
        if isinstance(file_settings.get("load_path"), list):
            load_path = [str(p) for p in file_settings["load_path"]]
        if LOAD_PATH_VAR in environ:
            load_path = _split_path_list(environ[LOAD_PATH_VAR], load_path)

        depots = [str(p) for p in default_depot_path()]
        if isinstance(file_settings.get("depot_path"), list):
            depots = [str(p) for p in file_settings["depot_path"]]
        if DEPOT_PATH_VAR in environ:
            depots = _split_path_list(environ[DEPOT_PATH_VAR], depots)

        project_setting = environ.get(PROJECT_VAR) or file_settings.get("project")
        active_project = resolve_project_setting(project_setting, cwd) if project_setting else None

        return cls(
            load_path=load_path,
            depot_path=[Path(p).expanduser() for p in depots],
            active_project=active_project,
        )


def resolve_project_setting(value: str, cwd: Path) -> Path | None:
    """Turn a project setting into a directory.

    ``@.`` searches upward from `cwd` for a project file; anything else is a path.
    """
    if value == "@.":
        found = search_project_upwards(cwd)
        if found is None:
            logger.debug(f"[pkg:settings] no project found above {cwd}")
        return found
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = cwd / path
    return path


def _split_path_list(value: str, defaults: list[str]) -> list[str]:
    result: list[str] = []
    for part in value.split(os.pathsep):
        if part:
            result.append(part)
        else:
            result.extend(defaults)
    return result


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            content = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to read {path}: {e}")
        return {}
    if not isinstance(content, dict):
        logger.warning(f"Ignoring {path}: expected a mapping")
        return {}
    return content
