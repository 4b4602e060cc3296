"""Filesystem access provider contract and its local-disk implementation.

All operations are coroutines returning ``FsResult``; OS errors are classified
at this boundary and never propagate to callers. Paths are joined, never
resolved, so results echo the form the caller used.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Protocol

from ..errors import ErrorKind, FsResult, failure_from_exception
from .types import DirectoryItem, FileContent, sort_key

logger = logging.getLogger(__name__)

TAG_SIDECAR_NAME = ".notepad-tags.json"


class FileSystemProvider(Protocol):
    """Primitive filesystem operations consumed by the index, search and tags."""

    async def read_directory(self, path: Path) -> FsResult[list[DirectoryItem]]: ...

    async def read_file(self, path: Path) -> FsResult[FileContent]: ...

    async def write_file(self, path: Path, content: str) -> FsResult[None]: ...

    async def create_file(self, path: Path, content: str = "") -> FsResult[None]: ...

    async def create_folder(self, path: Path) -> FsResult[None]: ...

    async def delete_item(self, path: Path) -> FsResult[None]: ...

    async def rename_item(self, old_path: Path, new_path: Path) -> FsResult[None]: ...

    async def copy_file(self, source: Path, dest: Path) -> FsResult[None]: ...

    async def exists(self, path: Path) -> bool: ...

    async def is_directory(self, path: Path) -> bool: ...


def decode_payload(raw: bytes) -> FileContent:
    """Tag ``raw`` as text when it decodes cleanly, otherwise as binary."""
    if b"\x00" in raw:
        return FileContent(kind="binary", data=raw)
    try:
        # utf-8-sig also accepts plain UTF-8 and drops a leading BOM.
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return FileContent(kind="binary", data=raw)
    return FileContent(kind="text", data=text)


class LocalFileSystemProvider:
    """``FileSystemProvider`` backed by the local disk."""

    async def read_directory(self, path: Path) -> FsResult[list[DirectoryItem]]:
        directory = Path(path)
        items: list[DirectoryItem] = []
        try:
            with os.scandir(directory) as entries:
                for child in entries:
                    try:
                        is_dir = child.is_dir()
                    except OSError:
                        is_dir = False

                    size: int | None = None
                    modified_time: float | None = None
                    try:
                        stat = child.stat()
                        modified_time = float(stat.st_mtime)
                        if not is_dir:
                            size = int(stat.st_size)
                    except OSError:
                        pass

                    items.append(
                        DirectoryItem(
                            name=child.name,
                            path=directory / child.name,
                            is_directory=is_dir,
                            size=size,
                            modified_time=modified_time,
                        )
                    )
        except OSError as exc:
            logger.debug("read_directory failed for %s: %s", directory, exc)
            return failure_from_exception(exc)

        items.sort(key=lambda item: sort_key(item.name, item.is_directory))
        return FsResult.ok(items)

    async def read_file(self, path: Path) -> FsResult[FileContent]:
        try:
            raw = Path(path).read_bytes()
        except OSError as exc:
            logger.debug("read_file failed for %s: %s", path, exc)
            return failure_from_exception(exc)
        return FsResult.ok(decode_payload(raw))

    async def write_file(self, path: Path, content: str) -> FsResult[None]:
        try:
            Path(path).write_text(content, encoding="utf-8")
        except OSError as exc:
            logger.debug("write_file failed for %s: %s", path, exc)
            return failure_from_exception(exc)
        return FsResult.ok()

    async def create_file(self, path: Path, content: str = "") -> FsResult[None]:
        try:
            with open(path, "x", encoding="utf-8") as handle:
                handle.write(content)
        except OSError as exc:
            logger.debug("create_file failed for %s: %s", path, exc)
            return failure_from_exception(exc)
        return FsResult.ok()

    async def create_folder(self, path: Path) -> FsResult[None]:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.debug("create_folder failed for %s: %s", path, exc)
            return failure_from_exception(exc)
        return FsResult.ok()

    async def delete_item(self, path: Path) -> FsResult[None]:
        target = Path(path)
        try:
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()
        except OSError as exc:
            logger.debug("delete_item failed for %s: %s", target, exc)
            return failure_from_exception(exc)
        return FsResult.ok()

    async def rename_item(self, old_path: Path, new_path: Path) -> FsResult[None]:
        source = Path(old_path)
        if not os.path.lexists(source):
            return FsResult.fail(ErrorKind.NOT_FOUND, f"Source not found: {source}")
        try:
            os.rename(source, new_path)
        except OSError as exc:
            logger.debug("rename_item failed for %s -> %s: %s", source, new_path, exc)
            return failure_from_exception(exc)
        return FsResult.ok()

    async def copy_file(self, source: Path, dest: Path) -> FsResult[None]:
        try:
            shutil.copy2(source, dest)
        except OSError as exc:
            logger.debug("copy_file failed for %s -> %s: %s", source, dest, exc)
            return failure_from_exception(exc)
        return FsResult.ok()

    async def exists(self, path: Path) -> bool:
        return os.path.lexists(path)

    async def is_directory(self, path: Path) -> bool:
        return Path(path).is_dir()


__all__ = [
    "FileSystemProvider",
    "LocalFileSystemProvider",
    "TAG_SIDECAR_NAME",
    "decode_payload",
]
