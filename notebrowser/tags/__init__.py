"""Workspace tag definitions and assignments backed by a JSON sidecar."""

from __future__ import annotations

from .store import (
    DEFAULT_COLOR,
    PRESET_COLORS,
    Tag,
    TagStore,
    TagStoreFile,
    load_tags,
    normalize_item_path,
    parse_tag_file,
    save_tags,
    serialize_tag_file,
    tag_file_path,
)

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
