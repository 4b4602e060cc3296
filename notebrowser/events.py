"""Typed observer channels used to notify dependents of workspace changes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

TAGS_UPDATED = "tags-updated"


class Subscription:
    """Handle returned by ``EventChannel.subscribe``."""

    def __init__(self, channel: "EventChannel", listener: Callable) -> None:
        self._channel = channel
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._channel._remove(self._listener)


class EventChannel(Generic[T]):
    """Named synchronous broadcast channel with explicit listener list."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Callable[[T], None]] = []

    def subscribe(self, listener: Callable[[T], None]) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: Callable[[T], None]) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, payload: T) -> None:
        """Deliver ``payload`` to every listener; one failure does not stop the rest."""
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception:
                logger.exception("listener on %r failed", self.name)


@dataclass(frozen=True)
class RootChange:
    old_root: Path
    new_root: Path


@dataclass(frozen=True)
class ItemRelocated:
    old_path: Path
    new_path: Path


@dataclass(frozen=True)
class ItemDeleted:
    path: Path


class WorkspaceEvents:
    """Channels owned by one workspace session."""

    def __init__(self) -> None:
        self.root_changed: EventChannel[RootChange] = EventChannel("root-changed")
        self.item_relocated: EventChannel[ItemRelocated] = EventChannel("item-relocated")
        self.item_deleted: EventChannel[ItemDeleted] = EventChannel("item-deleted")


__all__ = [
    "EventChannel",
    "ItemDeleted",
    "ItemRelocated",
    "RootChange",
    "Subscription",
    "TAGS_UPDATED",
    "WorkspaceEvents",
]
