"""Package identities and version slugs.

A package is identified by its UUID, not by its name. The same name may denote
unrelated packages depending on which package performs the import, so every
lookup in this library carries a full identity.
"""

from __future__ import annotations

import hashlib
import string
from dataclasses import dataclass
from uuid import UUID

SLUG_CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEFAULT_SLUG_LENGTH = 5


@dataclass(frozen=True, eq=False)
class PackageIdentity:
    """A (name, uuid) pair.

    Two identities with UUIDs are the same package iff their UUIDs are equal,
    whatever their names. Identities without a UUID are unregistered packages
    (the top-level project, loose package directories) and are keyed by name.
    """

    name: str
    uuid: UUID | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageIdentity):
            return NotImplemented
        if self.uuid is None and other.uuid is None:
            return self.name == other.name
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        if self.uuid is None:
            return hash(("name", self.name))
        return hash(self.uuid)

    def __str__(self) -> str:
        if self.uuid is None:
            return self.name
        return f"{self.name} [{self.uuid}]"


# Identity of top-level code; requests made from it resolve through roots.
MAIN = PackageIdentity("Main")


def _tree_hash_bytes(tree_hash: str) -> bytes:
    try:
        return bytes.fromhex(tree_hash)
    except ValueError:
        return tree_hash.encode("utf-8")


def version_slug(uuid: UUID, tree_hash: str, length: int = DEFAULT_SLUG_LENGTH) -> str:
    """Return the short storage directory name for one installed package version.

    Deterministic across processes and machines so that depots can be shared.
    """
    if length < 1:
        raise ValueError(f"Slug length must be positive: {length}")

    digest = hashlib.sha256(uuid.bytes + _tree_hash_bytes(tree_hash)).digest()
    value = int.from_bytes(digest, "big")

    chars = []
    for _ in range(length):
        value, index = divmod(value, len(SLUG_CHARS))
        chars.append(SLUG_CHARS[index])
    return "".join(chars)
