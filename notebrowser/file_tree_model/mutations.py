"""Structural mutations (create/delete/rename/move) routed through a provider.

The cache is only touched after the provider confirms success; each successful
mutation reloads the affected directories through the index merge so expanded
subtrees survive. Renaming or moving the workspace root replaces the whole
cache and announces the new root on ``WorkspaceEvents.root_changed``.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from ..errors import ErrorKind, FsResult, WorkspaceError
from ..events import ItemDeleted, ItemRelocated, RootChange, WorkspaceEvents
from .fs import FileSystemProvider
from .index import DirectoryIndex, is_same_or_descendant
from .types import sort_key

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY_SECONDS = 0.05
DEFAULT_SETTLE_ATTEMPTS = 5


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one coordinator operation."""

    success: bool
    operation: str
    path: Path | None = None
    error: str | None = None
    kind: ErrorKind | None = None

    @property
    def message(self) -> str | None:
        """User-facing failure text naming the operation, or ``None`` on success."""
        if self.success:
            return None
        return f"Failed to {self.operation}: {self.error}"


def validate_item_name(name: str) -> str | None:
    """Return an error message when ``name`` is not a single path segment."""
    if not name or not name.strip():
        return "name must not be empty"
    if name in {".", ".."}:
        return f"invalid name: {name!r}"
    separators = {"/", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    if any(sep in name for sep in separators):
        return f"name must not contain a path separator: {name!r}"
    return None


def _same_path_ignoring_case(left: Path, right: Path) -> bool:
    return str(left).lower() == str(right).lower()


class MutationCoordinator:
    """Apply filesystem mutations and keep a ``DirectoryIndex`` consistent."""

    def __init__(
        self,
        index: DirectoryIndex,
        provider: FileSystemProvider,
        events: WorkspaceEvents | None = None,
        *,
        settle_delay: float = DEFAULT_SETTLE_DELAY_SECONDS,
        settle_attempts: int = DEFAULT_SETTLE_ATTEMPTS,
    ) -> None:
        self._index = index
        self._provider = provider
        self._events = events or WorkspaceEvents()
        self.settle_delay = max(0.0, settle_delay)
        self.settle_attempts = max(1, settle_attempts)

    @property
    def events(self) -> WorkspaceEvents:
        return self._events

    def _root_path(self) -> Path | None:
        workspace = self._index.workspace
        return workspace.root_path if workspace is not None else None

    @staticmethod
    def _ok(operation: str, path: Path) -> MutationResult:
        return MutationResult(success=True, operation=operation, path=path)

    @staticmethod
    def _fail(operation: str, kind: ErrorKind, error: str, path: Path | None = None) -> MutationResult:
        logger.info("%s failed: %s (%s)", operation, error, kind.value)
        return MutationResult(success=False, operation=operation, path=path, error=error, kind=kind)

    def _from_result(self, operation: str, result: FsResult, path: Path) -> MutationResult:
        return self._fail(operation, result.kind or ErrorKind.IO_ERROR, result.error or "unknown error", path)

    async def create_file(self, parent_path: Path | str, name: str, content: str = "") -> MutationResult:
        return await self._create("create file", Path(parent_path), name, content=content, folder=False)

    async def create_folder(self, parent_path: Path | str, name: str) -> MutationResult:
        return await self._create("create folder", Path(parent_path), name, content="", folder=True)

    async def _create(self, operation: str, parent: Path, name: str, *, content: str, folder: bool) -> MutationResult:
        problem = validate_item_name(name)
        if problem is not None:
            return self._fail(operation, ErrorKind.INVALID_PATH, problem)
        target = parent / name
        if not await self._provider.is_directory(parent):
            return self._fail(operation, ErrorKind.NOT_FOUND, f"parent folder not found: {parent}", target)
        if await self._provider.exists(target):
            return self._fail(operation, ErrorKind.INVALID_PATH, f"already exists: {target}", target)

        if folder:
            result = await self._provider.create_folder(target)
        else:
            result = await self._provider.create_file(target, content)
        if not result.success:
            return self._from_result(operation, result, target)

        await self._index.reload(parent)
        return self._ok(operation, target)

    async def delete_item(self, path: Path | str) -> MutationResult:
        operation = "delete item"
        target = Path(path)
        if target == self._root_path():
            return self._fail(operation, ErrorKind.INVALID_PATH, "cannot delete the workspace root", target)

        result = await self._provider.delete_item(target)
        if not result.success:
            return self._from_result(operation, result, target)

        self._index.forget(target)
        await self._index.reload(target.parent)
        self._events.item_deleted.emit(ItemDeleted(path=target))
        return self._ok(operation, target)

    async def rename_to(self, path: Path | str, new_name: str) -> MutationResult:
        """Rename ``path`` within its parent directory."""
        source = Path(path)
        problem = validate_item_name(new_name)
        if problem is not None:
            return self._fail("rename", ErrorKind.INVALID_PATH, problem, source)
        return await self.rename_item(source, source.parent / new_name)

    async def rename_item(self, old_path: Path | str, new_path: Path | str) -> MutationResult:
        operation = "rename"
        old = Path(old_path)
        new = Path(new_path)
        if old == new:
            return self._ok(operation, new)
        if old in new.parents:
            return self._fail(operation, ErrorKind.INVALID_PATH, f"cannot move {old} inside itself", new)
        if await self._provider.exists(new) and not _same_path_ignoring_case(old, new):
            return self._fail(operation, ErrorKind.INVALID_PATH, f"already exists: {new}", new)

        result = await self._provider.rename_item(old, new)
        if not result.success:
            return self._from_result(operation, result, old)

        if old == self._root_path():
            return await self._replace_root(operation, old, new)

        await self._relocate_cached(old, new)
        self._events.item_relocated.emit(ItemRelocated(old_path=old, new_path=new))
        return self._ok(operation, new)

    async def move(self, source_path: Path | str, dest_dir: Path | str, *, overwrite: bool = False) -> MutationResult:
        """Move ``source_path`` into ``dest_dir``.

        Rejects moves into the source itself or one of its descendants, and
        name collisions at the destination unless ``overwrite`` is set.
        """
        operation = "move"
        source = Path(source_path)
        destination = Path(dest_dir)

        if is_same_or_descendant(destination, source):
            return self._fail(
                operation,
                ErrorKind.INVALID_PATH,
                f"cannot move {source} into itself or one of its subfolders",
                destination,
            )
        if not await self._provider.exists(source):
            return self._fail(operation, ErrorKind.NOT_FOUND, f"source not found: {source}", source)
        if not await self._provider.exists(destination):
            return self._fail(operation, ErrorKind.NOT_FOUND, f"destination not found: {destination}", destination)
        if not await self._provider.is_directory(destination):
            return self._fail(operation, ErrorKind.INVALID_PATH, f"destination is not a folder: {destination}", destination)

        target = destination / source.name
        if target == source:
            return self._ok(operation, source)
        if is_same_or_descendant(source, target):
            return self._fail(
                operation,
                ErrorKind.INVALID_PATH,
                f"cannot replace {target}: it contains {source}",
                target,
            )
        if await self._provider.exists(target):
            if not overwrite:
                return self._fail(operation, ErrorKind.INVALID_PATH, f"already exists: {target}", target)
            removed = await self._provider.delete_item(target)
            if not removed.success:
                return self._from_result(operation, removed, target)
            self._index.forget(target)
            self._events.item_deleted.emit(ItemDeleted(path=target))

        result = await self._provider.rename_item(source, target)
        if not result.success:
            return self._from_result(operation, result, source)

        if source == self._root_path():
            return await self._replace_root(operation, source, target)

        await self._relocate_cached(source, target, settle=True)
        self._events.item_relocated.emit(ItemRelocated(old_path=source, new_path=target))
        return self._ok(operation, target)

    async def _relocate_cached(self, old: Path, new: Path, *, settle: bool = False) -> None:
        index = self._index
        if index.get(new.parent) is not None:
            index.rekey(old, new)
        else:
            index.forget(old)

        parents = [old.parent]
        if new.parent != old.parent:
            parents.append(new.parent)
        if settle:
            await self.settle_and_reconcile(parents)
        else:
            for parent in parents:
                await index.reload(parent)

        moved = index.get(new)
        if moved is not None and moved.is_directory and moved.is_loaded:
            await index.reload(new)

    async def settle_and_reconcile(self, directories: list[Path]) -> None:
        """Re-read ``directories`` until two listings agree, then merge.

        Best effort: bounded by ``settle_attempts``; the final merge always runs.
        """
        for directory in directories:
            if self._index.get(directory) is None:
                continue
            previous: list[tuple[bool, str, str]] | None = None
            for _attempt in range(self.settle_attempts):
                listing = await self._provider.read_directory(directory)
                if not listing.success:
                    break
                current = sorted(sort_key(item.name, item.is_directory) for item in listing.data or [])
                if current == previous:
                    break
                previous = current
                await asyncio.sleep(self.settle_delay)
            await self._index.reload(directory)

    async def _replace_root(self, operation: str, old_root: Path, new_root: Path) -> MutationResult:
        try:
            await self._index.load_root(new_root)
        except WorkspaceError as exc:
            return self._fail(operation, exc.kind, exc.message, new_root)
        logger.info("workspace root moved from %s to %s", old_root, new_root)
        self._events.root_changed.emit(RootChange(old_root=old_root, new_root=new_root))
        return self._ok(operation, new_root)


__all__ = [
    "DEFAULT_SETTLE_ATTEMPTS",
    "DEFAULT_SETTLE_DELAY_SECONDS",
    "MutationCoordinator",
    "MutationResult",
    "validate_item_name",
]
