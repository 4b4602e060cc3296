"""Tests for the lazily-loaded directory index.

Covers root loading, child ordering, expand idempotence, the per-node loading
guard, and merge-on-reload preserving already-expanded subfolders.
"""

from __future__ import annotations

import asyncio
import tempfile
import unittest
from pathlib import Path

from notebrowser.errors import ErrorKind, WorkspaceError
from notebrowser.file_tree_model import DirectoryIndex, LocalFileSystemProvider, NodeKind


class _GatedProvider:
    """Provider wrapper whose ``read_directory`` waits on an event."""

    def __init__(self, inner: LocalFileSystemProvider) -> None:
        self._inner = inner
        self.gate = asyncio.Event()
        self.gate.set()
        self.reads: list[Path] = []

    async def read_directory(self, path: Path):
        self.reads.append(Path(path))
        await self.gate.wait()
        return await self._inner.read_directory(path)

    def __getattr__(self, name: str):
        return getattr(self._inner, name)


def _names(index: DirectoryIndex, path: Path) -> list[str]:
    return [node.name for node in index.children_of(path) or []]


class DirectoryIndexTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name) / "Notes"
        (self.root / "docs" / "guides").mkdir(parents=True)
        (self.root / "docs" / "guides" / "intro.md").write_text("# intro\n", encoding="utf-8")
        (self.root / "docs" / "readme.md").write_text("docs\n", encoding="utf-8")
        (self.root / "Archive").mkdir()
        (self.root / "b.md").write_text("b\n", encoding="utf-8")
        (self.root / "A.md").write_text("a\n", encoding="utf-8")
        (self.root / ".notepad-tags.json").write_text("{}", encoding="utf-8")
        self.provider = LocalFileSystemProvider()

    async def test_load_root_reads_one_level_under_named_root(self) -> None:
        index = DirectoryIndex(self.provider)
        workspace = await index.load_root(self.root)

        self.assertEqual(workspace.root_path, self.root)
        self.assertEqual(workspace.root.name, "Notes")
        self.assertIs(workspace.root.kind, NodeKind.DIRECTORY)
        self.assertEqual(_names(index, self.root), ["Archive", "docs", "A.md", "b.md"])
        docs = index.get(self.root / "docs")
        self.assertIsNotNone(docs)
        self.assertIsNone(docs.children)
        self.assertIsNone(index.get(self.root / "A.md").children)

    async def test_load_root_missing_path_raises_not_found(self) -> None:
        index = DirectoryIndex(self.provider)
        with self.assertRaises(WorkspaceError) as caught:
            await index.load_root(self.root.parent / "Missing")
        self.assertEqual(caught.exception.kind, ErrorKind.NOT_FOUND)
        self.assertIsNone(index.workspace)

    async def test_tag_sidecar_is_never_listed(self) -> None:
        index = DirectoryIndex(self.provider)
        await index.load_root(self.root)
        self.assertNotIn(".notepad-tags.json", _names(index, self.root))

    async def test_show_hidden_false_drops_dot_entries(self) -> None:
        (self.root / ".trash").mkdir()
        visible = DirectoryIndex(self.provider)
        hidden = DirectoryIndex(self.provider, show_hidden=False)
        await visible.load_root(self.root)
        await hidden.load_root(self.root)

        self.assertIn(".trash", _names(visible, self.root))
        self.assertNotIn(".trash", _names(hidden, self.root))

    async def test_expand_twice_is_idempotent(self) -> None:
        index = DirectoryIndex(self.provider)
        await index.load_root(self.root)
        docs = self.root / "docs"

        first = await index.expand(docs)
        snapshot = [(node.path, node.kind, node.children) for node in index.children_of(docs)]
        second = await index.expand(docs)

        self.assertTrue(first.success and first.data)
        self.assertTrue(second.success)
        self.assertFalse(second.data)
        self.assertEqual(snapshot, [(node.path, node.kind, node.children) for node in index.children_of(docs)])
        self.assertEqual(_names(index, docs), ["guides", "readme.md"])

    async def test_expand_file_or_unknown_node_is_noop(self) -> None:
        index = DirectoryIndex(self.provider)
        await index.load_root(self.root)

        on_file = await index.expand(self.root / "A.md")
        on_unknown = await index.expand(self.root / "nope")

        self.assertEqual((on_file.success, on_file.data), (True, False))
        self.assertEqual((on_unknown.success, on_unknown.data), (True, False))

    async def test_concurrent_expand_on_same_node_reads_once(self) -> None:
        gated = _GatedProvider(self.provider)
        index = DirectoryIndex(gated)
        await index.load_root(self.root)
        gated.gate.clear()
        docs = self.root / "docs"

        first = asyncio.create_task(index.expand(docs))
        await asyncio.sleep(0)
        self.assertTrue(index.get(docs).loading)
        second = await index.expand(docs)
        gated.gate.set()
        first_result = await first

        self.assertFalse(second.data)
        self.assertTrue(first_result.data)
        self.assertEqual(gated.reads.count(docs), 1)
        self.assertFalse(index.get(docs).loading)

    async def test_reload_keeps_expanded_subfolders(self) -> None:
        index = DirectoryIndex(self.provider)
        await index.load_root(self.root)
        docs = self.root / "docs"
        guides = docs / "guides"
        await index.expand(docs)
        await index.expand(guides)

        (self.root / "new.md").write_text("new\n", encoding="utf-8")
        result = await index.reload(self.root)

        self.assertTrue(result.data)
        self.assertIn("new.md", _names(index, self.root))
        self.assertTrue(index.is_loaded(docs))
        self.assertEqual(_names(index, guides), ["intro.md"])

    async def test_reload_evicts_vanished_children_and_their_subtrees(self) -> None:
        index = DirectoryIndex(self.provider)
        await index.load_root(self.root)
        docs = self.root / "docs"
        await index.expand(docs)
        await index.expand(docs / "guides")

        (docs / "guides" / "intro.md").unlink()
        (docs / "guides").rmdir()
        await index.reload(docs)

        self.assertEqual(_names(index, docs), ["readme.md"])
        self.assertIsNone(index.get(docs / "guides"))
        self.assertIsNone(index.get(docs / "guides" / "intro.md"))

    async def test_invalidate_drops_children_until_next_expand(self) -> None:
        index = DirectoryIndex(self.provider)
        await index.load_root(self.root)
        docs = self.root / "docs"
        await index.expand(docs)

        index.invalidate(docs)
        self.assertFalse(index.is_loaded(docs))
        self.assertIsNone(index.get(docs / "readme.md"))

        await index.expand(docs)
        self.assertEqual(_names(index, docs), ["guides", "readme.md"])

    async def test_rekey_moves_loaded_subtree_ids(self) -> None:
        index = DirectoryIndex(self.provider)
        await index.load_root(self.root)
        docs = self.root / "docs"
        await index.expand(docs)
        await index.expand(docs / "guides")

        moved = index.rekey(docs, self.root / "manual")

        self.assertTrue(moved)
        self.assertIsNone(index.get(docs))
        manual = index.get(self.root / "manual")
        self.assertEqual(manual.name, "manual")
        self.assertEqual(manual.children, [self.root / "manual" / "guides", self.root / "manual" / "readme.md"])
        self.assertEqual(index.get(self.root / "manual" / "guides" / "intro.md").path, self.root / "manual" / "guides" / "intro.md")

    async def test_walk_loaded_visits_depth_first_in_tree_order(self) -> None:
        index = DirectoryIndex(self.provider)
        await index.load_root(self.root)
        await index.expand(self.root / "docs")

        walked = [(depth, node.name) for depth, node in index.walk_loaded()]

        self.assertEqual(
            walked,
            [
                (0, "Notes"),
                (1, "Archive"),
                (1, "docs"),
                (2, "guides"),
                (2, "readme.md"),
                (1, "A.md"),
                (1, "b.md"),
            ],
        )


if __name__ == "__main__":
    unittest.main()
