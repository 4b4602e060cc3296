"""Tests for search input validation and result publishing."""

from __future__ import annotations

import asyncio
import tempfile
import unittest
from pathlib import Path

from notebrowser.file_tree_model import LocalFileSystemProvider
from notebrowser.search import SearchController, SearchQuery, SearchStatus
from notebrowser.search.controller import (
    EMPTY_QUERY_MESSAGE,
    MISSING_ROOT_MESSAGE,
    NO_MATCHES_MESSAGE,
    NO_ROOT_MESSAGE,
)


class _SlowDirectoryProvider(LocalFileSystemProvider):
    """Blocks listings of one directory until ``gate`` is set."""

    def __init__(self, slow_path: Path) -> None:
        self.slow_path = slow_path
        self.gate = asyncio.Event()
        self.waiting = asyncio.Event()

    async def read_directory(self, path: Path):
        if Path(path) == self.slow_path:
            self.waiting.set()
            await self.gate.wait()
        return await super().read_directory(path)


class SearchControllerTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        (self.root / "fast").mkdir()
        (self.root / "slow").mkdir()
        (self.root / "fast" / "a.md").write_text("needle in fast\n", encoding="utf-8")
        (self.root / "slow" / "b.md").write_text("needle in slow\n", encoding="utf-8")
        self.published = []

    def _controller(self, provider=None, root: Path | None = None) -> SearchController:
        return SearchController(
            provider or LocalFileSystemProvider(),
            root,
            on_publish=self.published.append,
        )

    async def test_empty_query_is_an_error(self) -> None:
        controller = self._controller(root=self.root)

        outcome = await controller.run(SearchQuery(text="   "))

        self.assertIs(outcome.status, SearchStatus.ERROR)
        self.assertEqual(outcome.message, EMPTY_QUERY_MESSAGE)
        self.assertIs(controller.outcome, outcome)

    async def test_no_open_folder_is_an_error(self) -> None:
        controller = self._controller()

        outcome = await controller.run(SearchQuery(text="needle"))

        self.assertIs(outcome.status, SearchStatus.ERROR)
        self.assertEqual(outcome.message, NO_ROOT_MESSAGE)

    async def test_missing_root_is_an_error(self) -> None:
        controller = self._controller(root=self.root / "gone")

        outcome = await controller.run(SearchQuery(text="needle"))

        self.assertIs(outcome.status, SearchStatus.ERROR)
        self.assertTrue(outcome.message.startswith(MISSING_ROOT_MESSAGE))

    async def test_no_matches_and_results_states(self) -> None:
        controller = self._controller(root=self.root)

        empty = await controller.run(SearchQuery(text="absent"))
        found = await controller.run(SearchQuery(text="needle"))

        self.assertIs(empty.status, SearchStatus.NO_RESULTS)
        self.assertEqual(empty.message, NO_MATCHES_MESSAGE)
        self.assertIs(found.status, SearchStatus.RESULTS)
        self.assertEqual(found.file_count, 2)
        self.assertEqual(found.root, self.root)
        self.assertEqual([outcome.request_id for outcome in self.published], [1, 2])

    async def test_rebind_changes_default_scope(self) -> None:
        controller = self._controller(root=self.root / "fast")
        controller.rebind(self.root / "slow")

        outcome = await controller.run(SearchQuery(text="needle"))

        self.assertEqual([result.path.name for result in outcome.results], ["b.md"])

    async def test_clear_returns_to_idle(self) -> None:
        controller = self._controller(root=self.root)
        await controller.run(SearchQuery(text="needle"))

        controller.clear()

        self.assertIs(controller.outcome.status, SearchStatus.IDLE)
        self.assertEqual(controller.outcome.results, ())

    async def test_last_completed_search_is_displayed(self) -> None:
        provider = _SlowDirectoryProvider(self.root / "slow")
        controller = self._controller(provider)

        slow = asyncio.create_task(controller.run(SearchQuery(text="needle"), self.root / "slow"))
        await provider.waiting.wait()
        self.assertTrue(controller.is_searching)
        fast = await controller.run(SearchQuery(text="needle"), self.root / "fast")
        self.assertIs(controller.outcome, fast)

        provider.gate.set()
        slow_outcome = await slow

        self.assertIs(controller.outcome, slow_outcome)
        self.assertEqual([result.path.name for result in controller.outcome.results], ["b.md"])
        self.assertEqual([outcome.request_id for outcome in self.published], [2, 1])
        self.assertFalse(controller.is_searching)


if __name__ == "__main__":
    unittest.main()
