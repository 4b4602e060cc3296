"""Search presentation state: input validation and latest-completed-wins results.

Searches are never cancelled. Every run gets a generation id; whichever run
completes last is published, so overlapping runs cannot leave a stale result
set on display.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..file_tree_model.fs import FileSystemProvider
from .content import SearchQuery, SearchResult, search

logger = logging.getLogger(__name__)

EMPTY_QUERY_MESSAGE = "Please enter a search query"
NO_ROOT_MESSAGE = "No folder opened. Please open a folder first."
NO_MATCHES_MESSAGE = "No matches found"
SEARCH_FAILED_MESSAGE = "An error occurred while searching"
MISSING_ROOT_MESSAGE = "Search folder not found"


class SearchStatus(str, Enum):
    IDLE = "idle"
    RESULTS = "results"
    NO_RESULTS = "no_results"
    ERROR = "error"


@dataclass(frozen=True)
class SearchOutcome:
    """Published result of one search run."""

    status: SearchStatus
    results: tuple[SearchResult, ...] = ()
    message: str | None = None
    request_id: int = 0
    query: SearchQuery | None = None
    root: Path | None = None

    @property
    def file_count(self) -> int:
        return len(self.results)


class SearchController:
    """Runs searches against the current root and keeps the displayed outcome."""

    def __init__(
        self,
        provider: FileSystemProvider,
        root: Path | None = None,
        on_publish: Callable[[SearchOutcome], None] | None = None,
    ) -> None:
        self.provider = provider
        self.root = Path(root) if root is not None else None
        self.on_publish = on_publish
        self.outcome = SearchOutcome(status=SearchStatus.IDLE)
        self._next_request_id = 1
        self._in_flight = 0

    @property
    def is_searching(self) -> bool:
        return self._in_flight > 0

    def rebind(self, root: Path | None) -> None:
        """Point default search scope at a new workspace root."""
        self.root = Path(root) if root is not None else None

    def clear(self) -> None:
        self._publish(SearchOutcome(status=SearchStatus.IDLE, request_id=self._take_request_id()))

    def _take_request_id(self) -> int:
        request_id = self._next_request_id
        self._next_request_id += 1
        return request_id

    def _publish(self, outcome: SearchOutcome) -> None:
        self.outcome = outcome
        if self.on_publish is not None:
            self.on_publish(outcome)

    async def run(self, query: SearchQuery, root: Path | str | None = None) -> SearchOutcome:
        """Validate, search, and publish; returns this run's own outcome.

        The returned outcome always describes this run, while ``outcome``
        holds whichever run completed most recently.
        """
        request_id = self._take_request_id()
        scope = Path(root) if root is not None else self.root

        if not query.text.strip():
            outcome = SearchOutcome(status=SearchStatus.ERROR, message=EMPTY_QUERY_MESSAGE, request_id=request_id, query=query)
            self._publish(outcome)
            return outcome
        if scope is None:
            outcome = SearchOutcome(status=SearchStatus.ERROR, message=NO_ROOT_MESSAGE, request_id=request_id, query=query)
            self._publish(outcome)
            return outcome
        if not await self.provider.is_directory(scope):
            outcome = SearchOutcome(
                status=SearchStatus.ERROR,
                message=f"{MISSING_ROOT_MESSAGE}: {scope}",
                request_id=request_id,
                query=query,
                root=scope,
            )
            self._publish(outcome)
            return outcome

        self._in_flight += 1
        try:
            results = await search(self.provider, scope, query)
        except Exception:
            logger.exception("search under %s failed", scope)
            outcome = SearchOutcome(
                status=SearchStatus.ERROR,
                message=SEARCH_FAILED_MESSAGE,
                request_id=request_id,
                query=query,
                root=scope,
            )
        else:
            if results:
                outcome = SearchOutcome(
                    status=SearchStatus.RESULTS,
                    results=tuple(results),
                    request_id=request_id,
                    query=query,
                    root=scope,
                )
            else:
                outcome = SearchOutcome(
                    status=SearchStatus.NO_RESULTS,
                    message=NO_MATCHES_MESSAGE,
                    request_id=request_id,
                    query=query,
                    root=scope,
                )
        finally:
            self._in_flight -= 1

        self._publish(outcome)
        return outcome


__all__ = [
    "EMPTY_QUERY_MESSAGE",
    "MISSING_ROOT_MESSAGE",
    "NO_MATCHES_MESSAGE",
    "NO_ROOT_MESSAGE",
    "SEARCH_FAILED_MESSAGE",
    "SearchController",
    "SearchOutcome",
    "SearchStatus",
]
