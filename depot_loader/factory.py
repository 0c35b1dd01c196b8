"""Wire settings into a ready-to-use resolution engine."""

from __future__ import annotations

import logging

from .engine import ResolutionEngine
from .evaluator import Evaluator
from .evaluator import SourceFileEvaluator
from .locator import PathResolver
from .settings import LoaderSettings
from .stack import EnvironmentStack
from .stack import expand_load_path

logger = logging.getLogger(__name__)


def create_stack(settings: LoaderSettings) -> EnvironmentStack:
    paths = expand_load_path(settings.load_path, settings.active_project, settings.depot_path)
    return EnvironmentStack.from_load_path(paths)


def create_engine(settings: LoaderSettings | None = None, evaluator: Evaluator | None = None) -> ResolutionEngine:
    """Create an engine from settings.

    Args:
        settings: Loader settings (default: read from settings file and environment)
        evaluator: Evaluation collaborator (default: SourceFileEvaluator)

    Returns:
        ResolutionEngine with a fresh loaded-package table
    """
    settings = settings or LoaderSettings.load()
    stack = create_stack(settings)
    resolver = PathResolver(settings.depot_path)
    logger.debug(f"[pkg:settings] {len(stack)} environments, {len(resolver.depots)} depots")
    return ResolutionEngine(stack, resolver, evaluator or SourceFileEvaluator())
