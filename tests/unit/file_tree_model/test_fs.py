"""Tests for the local filesystem access provider.

Verifies sorted directory listings, text/binary tagging and that OS failures
come back as classified ``FsResult`` values instead of exceptions.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from notebrowser.errors import ErrorKind
from notebrowser.file_tree_model import LocalFileSystemProvider, decode_payload


class LocalFileSystemProviderTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        self.provider = LocalFileSystemProvider()

    async def test_read_directory_lists_directories_first_then_case_insensitive_names(self) -> None:
        (self.root / "beta.md").write_text("b", encoding="utf-8")
        (self.root / "Alpha.md").write_text("a", encoding="utf-8")
        (self.root / "zeta").mkdir()
        (self.root / "Docs").mkdir()

        result = await self.provider.read_directory(self.root)

        self.assertTrue(result.success)
        self.assertEqual([item.name for item in result.data], ["Docs", "zeta", "Alpha.md", "beta.md"])
        self.assertEqual(result.data[2].path, self.root / "Alpha.md")
        self.assertEqual(result.data[2].size, 1)
        self.assertIsNone(result.data[0].size)
        self.assertIsNotNone(result.data[0].modified_time)

    async def test_read_directory_missing_path_reports_not_found(self) -> None:
        result = await self.provider.read_directory(self.root / "missing")

        self.assertFalse(result.success)
        self.assertEqual(result.kind, ErrorKind.NOT_FOUND)
        self.assertTrue(result.error)

    async def test_read_file_tags_text_and_binary_payloads(self) -> None:
        text_path = self.root / "note.md"
        text_path.write_text("hello world\n", encoding="utf-8")
        binary_path = self.root / "image.png"
        binary_path.write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")

        text_result = await self.provider.read_file(text_path)
        binary_result = await self.provider.read_file(binary_path)

        self.assertTrue(text_result.data.is_text)
        self.assertEqual(text_result.data.data, "hello world\n")
        self.assertFalse(binary_result.data.is_text)

    async def test_create_file_refuses_to_overwrite(self) -> None:
        target = self.root / "a.md"
        first = await self.provider.create_file(target, "one")
        second = await self.provider.create_file(target, "two")

        self.assertTrue(first.success)
        self.assertFalse(second.success)
        self.assertEqual(second.kind, ErrorKind.INVALID_PATH)
        self.assertEqual(target.read_text(encoding="utf-8"), "one")

    async def test_delete_item_removes_directories_recursively(self) -> None:
        folder = self.root / "folder"
        (folder / "nested").mkdir(parents=True)
        (folder / "nested" / "deep.md").write_text("x", encoding="utf-8")

        result = await self.provider.delete_item(folder)

        self.assertTrue(result.success)
        self.assertFalse(await self.provider.exists(folder))

    async def test_rename_missing_source_reports_not_found(self) -> None:
        result = await self.provider.rename_item(self.root / "ghost.md", self.root / "other.md")

        self.assertFalse(result.success)
        self.assertEqual(result.kind, ErrorKind.NOT_FOUND)
        self.assertIn("ghost.md", result.error)

    async def test_copy_write_and_type_checks(self) -> None:
        source = self.root / "a.md"
        await self.provider.write_file(source, "content")
        copied = await self.provider.copy_file(source, self.root / "b.md")
        await self.provider.create_folder(self.root / "x" / "y")

        self.assertTrue(copied.success)
        self.assertEqual((self.root / "b.md").read_text(encoding="utf-8"), "content")
        self.assertTrue(await self.provider.is_directory(self.root / "x" / "y"))
        self.assertFalse(await self.provider.is_directory(source))


class DecodePayloadTests(unittest.TestCase):
    def test_decode_payload_strips_bom_and_rejects_invalid_utf8(self) -> None:
        self.assertEqual(decode_payload("\ufeffhi".encode("utf-8")).data, "hi")
        self.assertEqual(decode_payload(b"\xff\xfe\xfa").kind, "binary")
        self.assertEqual(decode_payload(b"a\x00b").kind, "binary")


if __name__ == "__main__":
    unittest.main()
