"""depot-loader - contextual package resolution and load-once loading.

A package name means different things depending on who imports it. The
environment stack maps (requester, name) to a package identity, the path
resolver finds the identity's entry file, and the engine loads each identity
exactly once per process.
"""

from .engine import ResolutionEngine
from .environment import Environment
from .environment import PackageDirectoryEnvironment
from .errors import ConfigError
from .errors import LoaderError
from .errors import PackageLoadError
from .errors import PackageNotFoundError
from .errors import UnresolvedNameError
from .evaluator import Evaluator
from .evaluator import SourceFileEvaluator
from .factory import create_engine
from .identity import MAIN
from .identity import PackageIdentity
from .identity import version_slug
from .locator import PathResolver
from .settings import LoaderSettings
from .stack import EnvironmentStack
from .table import LoadedPackageTable

__all__ = [
    "MAIN",
    "ConfigError",
    "Environment",
    "EnvironmentStack",
    "Evaluator",
    "LoadedPackageTable",
    "LoaderError",
    "LoaderSettings",
    "PackageDirectoryEnvironment",
    "PackageIdentity",
    "PackageLoadError",
    "PackageNotFoundError",
    "PathResolver",
    "ResolutionEngine",
    "SourceFileEvaluator",
    "UnresolvedNameError",
    "create_engine",
    "version_slug",
]
