"""One open workspace with its index, mutations, search and tags wired together.

The session is the explicit ``Workspace`` handle callers pass around instead of
an ambient "current folder". It subscribes the search controller and tag store
to root changes, and carries tag assignments along when items are renamed,
moved or deleted.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import ErrorKind, FsResult, WorkspaceError
from .events import ItemDeleted, ItemRelocated, RootChange, Subscription, WorkspaceEvents
from .file_tree_model.fs import FileSystemProvider, LocalFileSystemProvider
from .file_tree_model.index import DirectoryIndex
from .file_tree_model.mutations import (
    DEFAULT_SETTLE_ATTEMPTS,
    DEFAULT_SETTLE_DELAY_SECONDS,
    MutationCoordinator,
    MutationResult,
)
from .file_tree_model.types import Workspace
from .search.content import SearchQuery
from .search.controller import SearchController, SearchOutcome
from .tags.store import TagStore

logger = logging.getLogger(__name__)


class WorkspaceSession:
    """Owns the active workspace and the components bound to its root."""

    def __init__(
        self,
        provider: FileSystemProvider | None = None,
        *,
        show_hidden: bool = True,
        settle_delay: float = DEFAULT_SETTLE_DELAY_SECONDS,
        settle_attempts: int = DEFAULT_SETTLE_ATTEMPTS,
    ) -> None:
        self.provider: FileSystemProvider = provider or LocalFileSystemProvider()
        self.events = WorkspaceEvents()
        self.index = DirectoryIndex(self.provider, show_hidden=show_hidden)
        self.mutations = MutationCoordinator(
            self.index,
            self.provider,
            self.events,
            settle_delay=settle_delay,
            settle_attempts=settle_attempts,
        )
        self.search = SearchController(self.provider)
        self.tags: TagStore | None = None
        self._subscriptions: list[Subscription] = [
            self.events.root_changed.subscribe(self._on_root_changed),
        ]
        self._relocations: list[ItemRelocated | ItemDeleted] = []
        self._subscriptions.append(self.events.item_relocated.subscribe(self._relocations.append))
        self._subscriptions.append(self.events.item_deleted.subscribe(self._relocations.append))

    @property
    def workspace(self) -> Workspace | None:
        return self.index.workspace

    @property
    def root_path(self) -> Path | None:
        workspace = self.workspace
        return workspace.root_path if workspace is not None else None

    def require_root(self) -> Path:
        root = self.root_path
        if root is None:
            raise WorkspaceError(ErrorKind.NOT_FOUND, "No folder opened")
        return root

    async def open(self, path: Path | str) -> Workspace:
        """Open ``path`` as the workspace, replacing any previous one."""
        workspace = await self.index.load_root(path)
        self.search.rebind(workspace.root_path)
        if self.tags is None:
            self.tags = TagStore(self.provider, workspace.root_path)
        else:
            self.tags.rebind(workspace.root_path)
        self._relocations.clear()
        return workspace

    def close(self) -> None:
        self.index.close()
        self.search.rebind(None)
        self._relocations.clear()

    def _on_root_changed(self, change: RootChange) -> None:
        self.search.rebind(change.new_root)
        if self.tags is not None:
            self.tags.rebind(change.new_root)
        self._relocations.append(ItemRelocated(old_path=change.old_root, new_path=change.new_root))

    async def sync_tags(self) -> None:
        """Apply queued renames/moves/deletes to tag assignments.

        Raises ``TagStoreError`` when the sidecar cannot be rewritten.
        """
        if self.tags is None:
            self._relocations.clear()
            return
        while self._relocations:
            event = self._relocations.pop(0)
            if isinstance(event, ItemRelocated):
                await self.tags.relocate_items(event.old_path, event.new_path)
            else:
                await self.tags.forget_items(event.path)

    async def create_file(self, parent: Path | str, name: str, content: str = "") -> MutationResult:
        return await self.mutations.create_file(parent, name, content)

    async def create_folder(self, parent: Path | str, name: str) -> MutationResult:
        return await self.mutations.create_folder(parent, name)

    async def delete_item(self, path: Path | str) -> MutationResult:
        result = await self.mutations.delete_item(path)
        await self.sync_tags()
        return result

    async def rename_item(self, old_path: Path | str, new_path: Path | str) -> MutationResult:
        result = await self.mutations.rename_item(old_path, new_path)
        await self.sync_tags()
        return result

    async def rename_to(self, path: Path | str, new_name: str) -> MutationResult:
        result = await self.mutations.rename_to(path, new_name)
        await self.sync_tags()
        return result

    async def move(self, source: Path | str, dest_dir: Path | str, *, overwrite: bool = False) -> MutationResult:
        result = await self.mutations.move(source, dest_dir, overwrite=overwrite)
        await self.sync_tags()
        return result

    async def expand(self, path: Path | str) -> FsResult[bool]:
        return await self.index.expand(path)

    async def run_search(self, query: SearchQuery) -> SearchOutcome:
        return await self.search.run(query)

    def dispose(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self.close()


__all__ = [
    "WorkspaceSession",
]
