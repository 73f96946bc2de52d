"""Deterministic unified identifiers and destination paths."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass

from ..models import EntityKind

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")

_KIND_DIRECTORIES = {
    EntityKind.COMPONENT: "components",
    EntityKind.STATE_ACCESSOR: "state",
    EntityKind.CONTAINER: "containers",
    EntityKind.UTILITY: "utils",
}
_FALLBACK_DIRECTORY = "common"


def slugify(name: str) -> str:
    slug = _SLUG_PATTERN.sub("-", name.lower()).strip("-")
    return slug or "entity"


@dataclass(frozen=True)
class Identity:
    unified_id: str
    unified_path: str


class IdentityAssigner:
    """Pure mapping from `(kind, name)` to a unified id and path."""

    def __init__(self, *, base_dir: str = "merged", extension: str = ".ts") -> None:
        self.base_dir = base_dir.strip("/")
        self.extension = extension if extension.startswith(".") else f".{extension}"

    def assign(self, kind: EntityKind | str, name: str) -> Identity:
        slug = slugify(name)
        kind_value = kind.value if isinstance(kind, EntityKind) else str(kind)
        directory = _directory_for(kind)
        path = posixpath.join(self.base_dir, directory, f"{slug}{self.extension}")
        return Identity(unified_id=f"{kind_value}:{slug}", unified_path=path)


def _directory_for(kind: EntityKind | str) -> str:
    if isinstance(kind, EntityKind):
        return _KIND_DIRECTORIES[kind]
    try:
        return _KIND_DIRECTORIES[EntityKind(kind)]
    except ValueError:
        return _FALLBACK_DIRECTORY


__all__ = ["Identity", "IdentityAssigner", "slugify"]
