"""Shared constants and on-disk builders for tests."""

from pathlib import Path
from textwrap import dedent
from uuid import UUID

from depot_loader.identity import version_slug

U0 = UUID("a0000000-0000-4000-8000-000000000000")
UP = UUID("b0000000-0000-4000-8000-000000000001")
US = UUID("b0000000-0000-4000-8000-000000000002")
UQ = UUID("c0000000-0000-4000-8000-000000000003")
UR = UUID("d0000000-0000-4000-8000-000000000004")

HASH_US = "1" * 40
HASH_UQ = "2" * 40
HASH_UR = "3" * 40


def write_entry_file(package_dir: Path, name: str, body: str = "") -> Path:
    """Create <package_dir>/src/<name>.py with `body`."""
    src = package_dir / "src"
    src.mkdir(parents=True, exist_ok=True)
    entry = src / f"{name}.py"
    entry.write_text(dedent(body))
    return entry


def install_in_depot(depot: Path, name: str, uuid: UUID, tree_hash: str, body: str = "") -> Path:
    """Create a content-addressed package install under a depot."""
    package_dir = depot / "packages" / name / version_slug(uuid, tree_hash)
    return write_entry_file(package_dir, name, body)
