"""Project and manifest configuration documents."""

from .loader import find_project_file
from .loader import read_project_documents
from .loader import search_project_upwards
from .schema import ManifestConfig
from .schema import PathEntry
from .schema import ProjectConfig

__all__ = [
    "ManifestConfig",
    "PathEntry",
    "ProjectConfig",
    "find_project_file",
    "read_project_documents",
    "search_project_upwards",
]
