from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ..file_tree_model.fs import TAG_SIDECAR_NAME, FileSystemProvider
from ..file_tree_model.types import sort_key

logger = logging.getLogger(__name__)

PREVIEW_MAX_CHARS = 100


def normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    """Lowercase extensions and give each a leading dot (``"MD"`` -> ``".md"``)."""
    normalized: set[str] = set()
    for raw in extensions:
        text = str(raw).strip().lower()
        if not text or text == ".":
            continue
        normalized.add(text if text.startswith(".") else f".{text}")
    return frozenset(normalized)


@dataclass(frozen=True)
class SearchQuery:
    text: str
    case_sensitive: bool = False
    whole_word: bool = False
    extension_filter: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extension_filter", normalize_extensions(self.extension_filter))

    def accepts_file(self, path: Path) -> bool:
        if not self.extension_filter:
            return True
        return path.suffix.lower() in self.extension_filter


@dataclass(frozen=True)
class SearchResult:
    path: Path
    match_count: int
    preview_line: str
    highlighted_spans: tuple[tuple[int, int], ...] = ()


def compile_query(query: SearchQuery) -> re.Pattern[str]:
    """Compile the escaped query, word-bounded when ``whole_word`` is set."""
    pattern = re.escape(query.text)
    if query.whole_word:
        pattern = rf"\b{pattern}\b"
    flags = 0 if query.case_sensitive else re.IGNORECASE
    return re.compile(pattern, flags)


def highlight_spans(text: str, query: SearchQuery, pattern: re.Pattern[str] | None = None) -> tuple[tuple[int, int], ...]:
    """Return ``(start, end)`` offsets of every match of ``query`` in ``text``."""
    if not query.text:
        return ()
    compiled = pattern if pattern is not None else compile_query(query)
    return tuple(match.span() for match in compiled.finditer(text) if match.end() > match.start())


def preview_line(content: str, pattern: re.Pattern[str]) -> str:
    """First line containing a match, stripped and cut to ``PREVIEW_MAX_CHARS``."""
    for line in content.split("\n"):
        if pattern.search(line):
            return line.strip()[:PREVIEW_MAX_CHARS]
    return ""


def match_file_content(path: Path, content: str, query: SearchQuery, pattern: re.Pattern[str]) -> SearchResult | None:
    """Build a result for one file's text, or ``None`` when nothing matches."""
    count = sum(1 for match in pattern.finditer(content) if match.end() > match.start())
    if count == 0:
        return None
    preview = preview_line(content, pattern)
    return SearchResult(
        path=path,
        match_count=count,
        preview_line=preview,
        highlighted_spans=highlight_spans(preview, query, pattern),
    )


async def iter_search(provider: FileSystemProvider, root: Path, query: SearchQuery) -> AsyncIterator[SearchResult]:
    """Yield matches depth-first in tree order (directories first, then name).

    Unreadable directories and files that are not text are skipped silently.
    """
    if not query.text:
        return
    pattern = compile_query(query)
    async for result in _walk(provider, Path(root), query, pattern):
        yield result


async def _walk(
    provider: FileSystemProvider,
    directory: Path,
    query: SearchQuery,
    pattern: re.Pattern[str],
) -> AsyncIterator[SearchResult]:
    listing = await provider.read_directory(directory)
    if not listing.success:
        logger.debug("search skipped directory %s: %s", directory, listing.error)
        return

    items = sorted(listing.data or [], key=lambda item: sort_key(item.name, item.is_directory))
    for item in items:
        if item.is_directory:
            async for result in _walk(provider, item.path, query, pattern):
                yield result
            continue
        if item.name == TAG_SIDECAR_NAME or not query.accepts_file(item.path):
            continue
        payload = await provider.read_file(item.path)
        if not payload.success or payload.data is None or not payload.data.is_text:
            logger.debug("search skipped unreadable file %s", item.path)
            continue
        result = match_file_content(item.path, str(payload.data.data), query, pattern)
        if result is not None:
            yield result


async def search(provider: FileSystemProvider, root: Path | str, query: SearchQuery) -> list[SearchResult]:
    """Walk ``root`` afresh and return every matching file in traversal order."""
    return [result async for result in iter_search(provider, Path(root), query)]


__all__ = [
    "PREVIEW_MAX_CHARS",
    "SearchQuery",
    "SearchResult",
    "compile_query",
    "highlight_spans",
    "iter_search",
    "match_file_content",
    "normalize_extensions",
    "preview_line",
    "search",
]
