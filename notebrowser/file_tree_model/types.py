"""Domain datatypes for the lazily-loaded workspace tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class NodeKind(str, Enum):
    DIRECTORY = "directory"
    FILE = "file"


@dataclass(frozen=True)
class DirectoryItem:
    """One ``read_directory`` row as reported by a filesystem provider."""

    name: str
    path: Path
    is_directory: bool
    size: int | None = None
    modified_time: float | None = None


@dataclass(frozen=True)
class FileContent:
    """``read_file`` payload tagged as decoded text or raw bytes."""

    kind: str  # "text" or "binary"
    data: str | bytes

    @property
    def is_text(self) -> bool:
        return self.kind == "text"


@dataclass
class TreeNode:
    """Arena-stored tree node keyed by its path.

    ``children`` holds ordered child paths for a loaded directory and ``None``
    for an unloaded directory or a file. It is never partially populated.
    """

    path: Path
    name: str
    kind: NodeKind
    children: list[Path] | None = None
    loading: bool = False

    @property
    def is_directory(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    @property
    def is_loaded(self) -> bool:
        return self.children is not None


@dataclass
class Workspace:
    """The single open root directory and its node arena."""

    root_path: Path
    nodes: dict[Path, TreeNode] = field(default_factory=dict)

    @property
    def root(self) -> TreeNode:
        return self.nodes[self.root_path]


def sort_key(name: str, is_directory: bool) -> tuple[bool, str, str]:
    """Directories first, then case-insensitive name."""
    return (not is_directory, name.lower(), name)


def node_name_for(path: Path) -> str:
    """Display name for a path, falling back to the full text for ``/``."""
    return path.name or str(path)


__all__ = [
    "DirectoryItem",
    "FileContent",
    "NodeKind",
    "TreeNode",
    "Workspace",
    "node_name_for",
    "sort_key",
]
