"""Error taxonomy and the uniform result shape shared by workspace layers.

Filesystem failures never cross the provider boundary as exceptions. They are
classified into an ``ErrorKind`` and carried in an ``FsResult`` so callers can
report them one level up without wrapping every call in try/except.
"""

from __future__ import annotations

import errno
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories surfaced by workspace operations."""

    NOT_FOUND = "NotFound"
    PERMISSION_DENIED = "PermissionDenied"
    INVALID_PATH = "InvalidPath"
    PARSE_ERROR = "ParseError"
    CANCELLED = "Cancelled"
    IO_ERROR = "IOError"


@dataclass(frozen=True)
class FsResult(Generic[T]):
    """``{success, data?, error?}`` result returned by every provider call."""

    success: bool
    data: T | None = None
    error: str | None = None
    kind: ErrorKind | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "FsResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> "FsResult[T]":
        return cls(success=False, error=error, kind=kind)


class WorkspaceError(Exception):
    """Raised when a workspace-level operation cannot complete."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class TagStoreError(WorkspaceError):
    """Raised when the tag sidecar cannot be written."""


def classify_os_error(exc: BaseException) -> ErrorKind:
    """Map an ``OSError`` (or anything else) to an ``ErrorKind``."""
    if isinstance(exc, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(exc, (FileExistsError, NotADirectoryError, IsADirectoryError)):
        return ErrorKind.INVALID_PATH
    if isinstance(exc, OSError) and exc.errno in (errno.EINVAL, errno.ENOTEMPTY, errno.ENAMETOOLONG):
        return ErrorKind.INVALID_PATH
    return ErrorKind.IO_ERROR


def describe_os_error(exc: BaseException) -> str:
    """Return a short human-readable message for ``exc``."""
    if isinstance(exc, OSError) and exc.strerror:
        if exc.filename is not None:
            return f"{exc.strerror}: {exc.filename}"
        return exc.strerror
    text = str(exc).strip()
    return text or exc.__class__.__name__


def failure_from_exception(exc: BaseException) -> FsResult:
    """Build a failed ``FsResult`` from a caught exception."""
    return FsResult.fail(classify_os_error(exc), describe_os_error(exc))


__all__ = [
    "ErrorKind",
    "FsResult",
    "TagStoreError",
    "WorkspaceError",
    "classify_os_error",
    "describe_os_error",
    "failure_from_exception",
]
