"""Search package exports.

Combines the recursive content search and the result-publishing controller in
one import surface.
"""

from __future__ import annotations

from .content import (
    PREVIEW_MAX_CHARS,
    SearchQuery,
    SearchResult,
    compile_query,
    highlight_spans,
    iter_search,
    normalize_extensions,
    search,
)
from .controller import SearchController, SearchOutcome, SearchStatus

__all__ = [
    "PREVIEW_MAX_CHARS",
    "SearchController",
    "SearchOutcome",
    "SearchQuery",
    "SearchResult",
    "SearchStatus",
    "compile_query",
    "highlight_spans",
    "iter_search",
    "normalize_extensions",
    "search",
]
