"""Lazily-materialized directory index over a filesystem provider.

Nodes live in a flat arena keyed by path. Directory nodes list their child
paths once loaded; unloaded directories and files carry ``children=None``.
Reloads merge into the arena so already-expanded descendants survive.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from ..errors import ErrorKind, FsResult, WorkspaceError
from .fs import TAG_SIDECAR_NAME, FileSystemProvider
from .types import DirectoryItem, NodeKind, TreeNode, Workspace, node_name_for, sort_key

logger = logging.getLogger(__name__)


def is_same_or_descendant(path: Path, ancestor: Path) -> bool:
    """Return whether ``path`` equals ``ancestor`` or lies beneath it."""
    return path == ancestor or ancestor in path.parents


class DirectoryIndex:
    """Tree cache for the single open workspace."""

    def __init__(self, provider: FileSystemProvider, *, show_hidden: bool = True) -> None:
        self._provider = provider
        self.show_hidden = show_hidden
        self._workspace: Workspace | None = None

    @property
    def workspace(self) -> Workspace | None:
        return self._workspace

    def _require_workspace(self) -> Workspace:
        if self._workspace is None:
            raise WorkspaceError(ErrorKind.NOT_FOUND, "No workspace is open")
        return self._workspace

    async def load_root(self, path: Path | str) -> Workspace:
        """Read one level of ``path`` and install it as the active workspace.

        Raises ``WorkspaceError`` with the provider's error kind when the
        directory cannot be read. The previous workspace is kept on failure.
        """
        root_path = Path(path)
        result = await self._provider.read_directory(root_path)
        if not result.success:
            raise WorkspaceError(result.kind or ErrorKind.IO_ERROR, result.error or f"cannot open {root_path}")

        workspace = Workspace(root_path=root_path)
        workspace.nodes[root_path] = TreeNode(
            path=root_path,
            name=node_name_for(root_path),
            kind=NodeKind.DIRECTORY,
        )
        self._workspace = workspace
        self._merge_children(workspace, root_path, result.data or [])
        logger.debug("loaded workspace root %s (%d children)", root_path, len(workspace.root.children or []))
        return workspace

    def close(self) -> None:
        self._workspace = None

    def get(self, path: Path | str) -> TreeNode | None:
        if self._workspace is None:
            return None
        return self._workspace.nodes.get(Path(path))

    def is_loaded(self, path: Path | str) -> bool:
        node = self.get(path)
        return node is not None and node.is_loaded

    def children_of(self, path: Path | str) -> list[TreeNode] | None:
        """Return loaded children of ``path``, or ``None`` when unloaded/unknown."""
        node = self.get(path)
        if node is None or node.children is None:
            return None
        workspace = self._require_workspace()
        return [workspace.nodes[child] for child in node.children]

    def walk_loaded(self) -> Iterator[tuple[int, TreeNode]]:
        """Yield ``(depth, node)`` depth-first over every materialized node."""
        if self._workspace is None:
            return
        nodes = self._workspace.nodes
        stack: list[tuple[int, Path]] = [(0, self._workspace.root_path)]
        while stack:
            depth, path = stack.pop()
            node = nodes[path]
            yield depth, node
            if node.children:
                for child in reversed(node.children):
                    stack.append((depth + 1, child))

    async def expand(self, path: Path | str) -> FsResult[bool]:
        """Load one level of children for ``path`` unless already loaded/loading.

        Returns ``ok(True)`` when children were read and merged, ``ok(False)``
        for a no-op, and a failed result when the provider read failed.
        """
        node = self.get(path)
        if node is None or not node.is_directory or node.loading or node.is_loaded:
            return FsResult.ok(False)
        return await self._load(node)

    async def reload(self, path: Path | str) -> FsResult[bool]:
        """Re-read ``path`` and merge, whether or not it was loaded before."""
        node = self.get(path)
        if node is None or not node.is_directory:
            return FsResult.ok(False)
        return await self._load(node)

    async def _load(self, node: TreeNode) -> FsResult[bool]:
        workspace = self._require_workspace()
        node.loading = True
        try:
            result = await self._provider.read_directory(node.path)
        finally:
            node.loading = False

        if workspace is not self._workspace or workspace.nodes.get(node.path) is not node:
            # The node was evicted or re-keyed while the read was in flight.
            return FsResult.ok(False)
        if not result.success:
            return FsResult.fail(result.kind or ErrorKind.IO_ERROR, result.error or "read failed")
        self._merge_children(workspace, node.path, result.data or [])
        return FsResult.ok(True)

    def _visible(self, item: DirectoryItem) -> bool:
        if item.name == TAG_SIDECAR_NAME:
            return False
        if not self.show_hidden and item.name.startswith("."):
            return False
        return True

    def _merge_children(self, workspace: Workspace, directory: Path, items: list[DirectoryItem]) -> None:
        """Merge freshly read ``items`` under ``directory``.

        Existing nodes with the same path and kind keep their loaded subtree;
        unmatched items are inserted unloaded and vanished children are evicted.
        """
        nodes = workspace.nodes
        parent = nodes[directory]
        previous = list(parent.children or [])

        ordered = sorted(
            (item for item in items if self._visible(item)),
            key=lambda item: sort_key(item.name, item.is_directory),
        )
        new_children: list[Path] = []
        for item in ordered:
            child_path = directory / item.name
            kind = NodeKind.DIRECTORY if item.is_directory else NodeKind.FILE
            existing = nodes.get(child_path)
            if existing is not None and existing.kind is kind:
                existing.name = item.name
            else:
                if existing is not None:
                    self._evict(workspace, child_path)
                nodes[child_path] = TreeNode(path=child_path, name=item.name, kind=kind)
            new_children.append(child_path)

        kept = set(new_children)
        for stale in previous:
            if stale not in kept:
                self._evict(workspace, stale)
        parent.children = new_children

    def _evict(self, workspace: Workspace, path: Path) -> None:
        node = workspace.nodes.pop(path, None)
        if node is None or not node.children:
            return
        for child in node.children:
            self._evict(workspace, child)

    def invalidate(self, path: Path | str) -> None:
        """Drop the cached children of ``path`` so the next expand re-reads it."""
        workspace = self._workspace
        node = self.get(path)
        if workspace is None or node is None or node.children is None:
            return
        for child in node.children:
            self._evict(workspace, child)
        node.children = None

    def forget(self, path: Path | str) -> None:
        """Remove ``path`` and its subtree, detaching it from its parent."""
        workspace = self._workspace
        target = Path(path)
        if workspace is None or target not in workspace.nodes or target == workspace.root_path:
            return
        parent = workspace.nodes.get(target.parent)
        if parent is not None and parent.children is not None and target in parent.children:
            parent.children = [child for child in parent.children if child != target]
        self._evict(workspace, target)

    def rekey(self, old_path: Path | str, new_path: Path | str) -> bool:
        """Rewrite the ids of ``old_path``'s subtree to live under ``new_path``.

        The node is detached from its former parent; the caller reloads the new
        parent so the merge picks the re-keyed subtree back up. Returns whether
        anything was moved.
        """
        workspace = self._workspace
        old = Path(old_path)
        new = Path(new_path)
        if workspace is None or old == new or old not in workspace.nodes or old == workspace.root_path:
            return False

        nodes = workspace.nodes
        parent = nodes.get(old.parent)
        if parent is not None and parent.children is not None:
            parent.children = [child for child in parent.children if child != old]

        if new in nodes:
            self._evict(workspace, new)

        moved: list[TreeNode] = []
        stack = [old]
        while stack:
            current = stack.pop()
            node = nodes.pop(current)
            moved.append(node)
            if node.children:
                stack.extend(node.children)

        for node in moved:
            relocated = new / node.path.relative_to(old) if node.path != old else new
            node.path = relocated
            if node.children is not None:
                node.children = [new / child.relative_to(old) for child in node.children]
            nodes[relocated] = node
        nodes[new].name = node_name_for(new)
        return True


__all__ = [
    "DirectoryIndex",
    "is_same_or_descendant",
]
