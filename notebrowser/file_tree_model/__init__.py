"""Domain model for the lazily-loaded workspace tree.

This package contains non-UI tree primitives:
- the filesystem access provider contract and local implementation
- node/workspace datatypes stored in a path-keyed arena
- the directory index with merge-on-reload
- the mutation coordinator for create/delete/rename/move
"""

from __future__ import annotations

from .types import DirectoryItem, FileContent, NodeKind, TreeNode, Workspace, sort_key
from .fs import TAG_SIDECAR_NAME, FileSystemProvider, LocalFileSystemProvider, decode_payload
from .index import DirectoryIndex, is_same_or_descendant
from .mutations import MutationCoordinator, MutationResult, validate_item_name

__all__ = [
    "DirectoryIndex",
    "DirectoryItem",
    "FileContent",
    "FileSystemProvider",
    "LocalFileSystemProvider",
    "MutationCoordinator",
    "MutationResult",
    "NodeKind",
    "TAG_SIDECAR_NAME",
    "TreeNode",
    "Workspace",
    "decode_payload",
    "is_same_or_descendant",
    "sort_key",
    "validate_item_name",
]
