"""Tag definitions and per-path assignments kept in a workspace sidecar file.

The sidecar ``<root>/.notepad-tags.json`` is read and rewritten whole on every
change. A missing or corrupt sidecar reads as an empty store. Item keys are
normalized to forward slashes so files written on another platform still match.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path, PurePath

from ..errors import ErrorKind, FsResult, TagStoreError
from ..events import TAGS_UPDATED, EventChannel, Subscription
from ..file_tree_model.fs import TAG_SIDECAR_NAME, FileSystemProvider

logger = logging.getLogger(__name__)

PRESET_COLORS = (
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#FFA07A",
    "#98D8C8",
    "#F7DC6F",
    "#BB8FCE",
    "#85C1E2",
    "#F8B88B",
    "#ABEBC6",
)
DEFAULT_COLOR = PRESET_COLORS[0]

_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def normalize_item_path(path: PurePath | str) -> str:
    """Sidecar key for ``path``: its text with backslashes turned into slashes."""
    return str(path).replace("\\", "/")


def tag_file_path(workspace_root: Path | str) -> Path:
    return Path(workspace_root) / TAG_SIDECAR_NAME


@dataclass
class Tag:
    id: str
    name: str
    color: str

    def to_json(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name, "color": self.color}


@dataclass
class TagStoreFile:
    """In-memory form of the sidecar: ordered tags plus ``path -> tag ids``."""

    tags: list[Tag] = field(default_factory=list)
    items: dict[str, set[str]] = field(default_factory=dict)

    def tag_ids(self) -> set[str]:
        return {tag.id for tag in self.tags}

    def find(self, tag_id: str) -> Tag | None:
        for tag in self.tags:
            if tag.id == tag_id:
                return tag
        return None

    def to_json(self) -> dict[str, object]:
        items: dict[str, dict[str, list[str]]] = {}
        for key in sorted(self.items):
            tag_ids = self.items[key]
            ordered = [tag.id for tag in self.tags if tag.id in tag_ids]
            ordered.extend(sorted(tag_ids.difference(ordered)))
            items[normalize_item_path(key)] = {"tagIds": ordered}
        return {"tags": [tag.to_json() for tag in self.tags], "items": items}

    @classmethod
    def from_json(cls, data: object) -> "TagStoreFile":
        """Build a store from decoded JSON, skipping malformed parts."""
        store = cls()
        if not isinstance(data, dict):
            return store

        raw_tags = data.get("tags")
        seen: set[str] = set()
        if isinstance(raw_tags, list):
            for raw in raw_tags:
                if not isinstance(raw, dict):
                    continue
                tag_id = raw.get("id")
                name = raw.get("name")
                color = raw.get("color")
                if isinstance(tag_id, (int, float)) and not isinstance(tag_id, bool):
                    tag_id = str(tag_id)
                if not isinstance(tag_id, str) or not tag_id or tag_id in seen:
                    continue
                if not isinstance(name, str):
                    continue
                if not isinstance(color, str) or not color:
                    color = DEFAULT_COLOR
                seen.add(tag_id)
                store.tags.append(Tag(id=tag_id, name=name, color=color))

        raw_items = data.get("items")
        if isinstance(raw_items, dict):
            for raw_key, raw_value in raw_items.items():
                if not isinstance(raw_value, dict):
                    continue
                tag_ids = raw_value.get("tagIds")
                if not isinstance(tag_ids, list):
                    continue
                key = normalize_item_path(raw_key)
                merged = store.items.setdefault(key, set())
                merged.update(str(tag_id) for tag_id in tag_ids if isinstance(tag_id, str))
        return store


def parse_tag_file(text: str) -> TagStoreFile:
    """Parse sidecar text; invalid JSON yields an empty store."""
    try:
        data = json.loads(text)
    except ValueError as exc:
        logger.warning("tag sidecar is not valid JSON (%s); using an empty store", exc)
        return TagStoreFile()
    return TagStoreFile.from_json(data)


def serialize_tag_file(store: TagStoreFile) -> str:
    return json.dumps(store.to_json(), indent=2) + "\n"


async def load_tags(provider: FileSystemProvider, workspace_root: Path | str) -> TagStoreFile:
    """Read the sidecar of ``workspace_root``; never raises."""
    path = tag_file_path(workspace_root)
    result = await provider.read_file(path)
    if not result.success or result.data is None:
        if result.kind is not ErrorKind.NOT_FOUND:
            logger.debug("tag sidecar %s unreadable: %s", path, result.error)
        return TagStoreFile()
    if not result.data.is_text:
        logger.warning("tag sidecar %s is not text; using an empty store", path)
        return TagStoreFile()
    return parse_tag_file(str(result.data.data))


async def save_tags(provider: FileSystemProvider, workspace_root: Path | str, store: TagStoreFile) -> FsResult[None]:
    """Overwrite the sidecar with ``store``."""
    path = tag_file_path(workspace_root)
    result = await provider.write_file(path, serialize_tag_file(store))
    if not result.success:
        logger.warning("failed to write tag sidecar %s: %s", path, result.error)
    return result


def _validate_name(name: str) -> str:
    cleaned = str(name).strip()
    if not cleaned:
        raise ValueError("tag name must not be empty")
    return cleaned


def _validate_color(color: str) -> str:
    cleaned = str(color).strip()
    if not _COLOR_RE.match(cleaned):
        raise ValueError(f"tag color must look like #rrggbb, got {color!r}")
    return cleaned


def _is_under(key: str, prefix: str) -> bool:
    return key == prefix or key.startswith(prefix.rstrip("/") + "/")


class TagStore:
    """Tag CRUD and assignment queries for one workspace root.

    Each mutating call re-reads the sidecar, applies the change, writes the
    whole file back and then broadcasts on ``TAGS_UPDATED``. A failed write
    raises ``TagStoreError`` and broadcasts nothing. There is no
    locking: two overlapping writers race and the later write wins.
    """

    def __init__(
        self,
        provider: FileSystemProvider,
        workspace_root: Path | str,
        channel: EventChannel[None] | None = None,
        *,
        new_id: Callable[[], str] | None = None,
    ) -> None:
        self._provider = provider
        self.workspace_root = Path(workspace_root)
        self.updates: EventChannel[None] = channel if channel is not None else EventChannel(TAGS_UPDATED)
        self._new_id = new_id or (lambda: uuid.uuid4().hex)

    @property
    def sidecar_path(self) -> Path:
        return tag_file_path(self.workspace_root)

    def rebind(self, workspace_root: Path | str) -> None:
        """Point the store at a new workspace root (after a root rename)."""
        self.workspace_root = Path(workspace_root)
        self.updates.emit(None)

    def subscribe(self, listener: Callable[[], None]) -> Subscription:
        return self.updates.subscribe(lambda _payload: listener())

    async def load(self) -> TagStoreFile:
        return await load_tags(self._provider, self.workspace_root)

    async def save(self, store: TagStoreFile) -> FsResult[None]:
        return await save_tags(self._provider, self.workspace_root, store)

    async def _commit(self, store: TagStoreFile) -> None:
        result = await self.save(store)
        if not result.success:
            raise TagStoreError(result.kind or ErrorKind.IO_ERROR, result.error or "cannot write tag sidecar")
        self.updates.emit(None)

    async def list_tags(self) -> list[Tag]:
        return list((await self.load()).tags)

    async def create_tag(self, name: str, color: str = DEFAULT_COLOR) -> Tag:
        store = await self.load()
        existing = store.tag_ids()
        tag_id = self._new_id()
        while tag_id in existing:
            tag_id = self._new_id()
        tag = Tag(id=tag_id, name=_validate_name(name), color=_validate_color(color))
        store.tags.append(tag)
        await self._commit(store)
        return tag

    async def update_tag(self, tag_id: str, name: str, color: str) -> Tag | None:
        """Rename/recolor ``tag_id`` in place; ``None`` if the tag is unknown."""
        cleaned_name = _validate_name(name)
        cleaned_color = _validate_color(color)
        store = await self.load()
        tag = store.find(tag_id)
        if tag is None:
            return None
        tag.name = cleaned_name
        tag.color = cleaned_color
        await self._commit(store)
        return tag

    async def delete_tag(self, tag_id: str) -> bool:
        """Remove ``tag_id`` and every assignment that references it."""
        store = await self.load()
        if store.find(tag_id) is None:
            return False
        store.tags = [tag for tag in store.tags if tag.id != tag_id]
        for key in list(store.items):
            store.items[key].discard(tag_id)
            if not store.items[key]:
                del store.items[key]
        await self._commit(store)
        return True

    async def get_assignment(self, item_path: PurePath | str) -> set[str]:
        store = await self.load()
        return set(store.items.get(normalize_item_path(item_path), set()))

    async def tags_for_item(self, item_path: PurePath | str) -> list[Tag]:
        """Tags assigned to ``item_path`` in tag-definition order."""
        store = await self.load()
        assigned = store.items.get(normalize_item_path(item_path), set())
        return [tag for tag in store.tags if tag.id in assigned]

    async def set_assignment(self, item_path: PurePath | str, tag_ids: Iterable[str]) -> set[str]:
        """Replace the tag set of ``item_path``; unknown ids are dropped."""
        store = await self.load()
        key = normalize_item_path(item_path)
        assigned = set(tag_ids) & store.tag_ids()
        if assigned:
            store.items[key] = assigned
        else:
            store.items.pop(key, None)
        await self._commit(store)
        return set(assigned)

    async def toggle_assignment(self, item_path: PurePath | str, tag_id: str) -> set[str]:
        current = await self.get_assignment(item_path)
        return await self.set_assignment(item_path, current ^ {tag_id})

    async def remove_item(self, item_path: PurePath | str) -> bool:
        store = await self.load()
        if store.items.pop(normalize_item_path(item_path), None) is None:
            return False
        await self._commit(store)
        return True

    async def query_by_tags(self, tag_ids: Iterable[str]) -> set[str]:
        """Paths carrying any of ``tag_ids``; an empty filter matches nothing."""
        wanted = set(tag_ids)
        if not wanted:
            return set()
        store = await self.load()
        return {
            normalize_item_path(key)
            for key, assigned in store.items.items()
            if assigned & wanted
        }

    async def relocate_items(self, old_path: PurePath | str, new_path: PurePath | str) -> int:
        """Re-key assignments of ``old_path`` and its descendants under ``new_path``."""
        old_key = normalize_item_path(old_path).rstrip("/")
        new_key = normalize_item_path(new_path).rstrip("/")
        store = await self.load()
        moved = 0
        for key in list(store.items):
            if not _is_under(key, old_key):
                continue
            relocated = new_key + key[len(old_key):]
            tag_ids = store.items.pop(key)
            store.items.setdefault(relocated, set()).update(tag_ids)
            moved += 1
        if moved:
            await self._commit(store)
        return moved

    async def forget_items(self, path: PurePath | str) -> int:
        """Drop assignments of ``path`` and everything beneath it."""
        prefix = normalize_item_path(path).rstrip("/")
        store = await self.load()
        doomed = [key for key in store.items if _is_under(key, prefix)]
        for key in doomed:
            del store.items[key]
        if doomed:
            await self._commit(store)
        return len(doomed)


__all__ = [
    "DEFAULT_COLOR",
    "PRESET_COLORS",
    "Tag",
    "TagStore",
    "TagStoreFile",
    "load_tags",
    "normalize_item_path",
    "parse_tag_file",
    "save_tags",
    "serialize_tag_file",
    "tag_file_path",
]
