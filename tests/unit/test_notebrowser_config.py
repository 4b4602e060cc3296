"""Tests for config persistence and input sanitization.

Validates last-workspace, search-default and settle-delay keys.
Ensures malformed config data is safely normalized on load.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from notebrowser import config


class ConfigBehaviorTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp = Path(tmp.name)
        patcher = mock.patch("notebrowser.config.CONFIG_PATH", self.tmp / "nested" / "config.json")
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_missing_config_uses_defaults(self) -> None:
        self.assertEqual(config.load_config(), {})
        self.assertIsNone(config.load_last_workspace())
        self.assertEqual(config.load_search_defaults(), (False, False, frozenset()))
        self.assertEqual(config.load_settle_delay_seconds(), 0.05)
        self.assertTrue(config.load_show_hidden())

    def test_last_workspace_round_trip_keeps_other_keys(self) -> None:
        config.save_show_hidden(False)
        config.save_last_workspace(self.tmp / "Notes")

        self.assertEqual(config.load_last_workspace(), self.tmp / "Notes")
        self.assertFalse(config.load_show_hidden())

    def test_search_defaults_round_trip(self) -> None:
        config.save_search_defaults(True, True, ["md", ".txt"])

        self.assertEqual(config.load_search_defaults(), (True, True, frozenset({"md", ".txt"})))
        self.assertEqual(config.load_config()["search_extensions"], [".txt", "md"])

    def test_malformed_values_fall_back(self) -> None:
        config.save_config(
            {
                "last_workspace": "   ",
                "search_case_sensitive": "yes",
                "search_whole_word": 1,
                "search_extensions": ["md", 3, ""],
                "settle_delay_ms": True,
                "show_hidden": "no",
            }
        )

        self.assertIsNone(config.load_last_workspace())
        self.assertEqual(config.load_search_defaults(), (False, False, frozenset({"md"})))
        self.assertEqual(config.load_settle_delay_seconds(), 0.05)
        self.assertTrue(config.load_show_hidden())

    def test_settle_delay_reads_milliseconds(self) -> None:
        config.save_config({"settle_delay_ms": 0})
        self.assertEqual(config.load_settle_delay_seconds(), 0.0)
        config.save_config({"settle_delay_ms": -5})
        self.assertEqual(config.load_settle_delay_seconds(), 0.05)
        config.save_config({"settle_delay_ms": 250})
        self.assertEqual(config.load_settle_delay_seconds(), 0.25)

    def test_non_object_config_is_ignored(self) -> None:
        path = self.tmp / "nested" / "config.json"
        path.parent.mkdir(parents=True)
        path.write_text("[1, 2]", encoding="utf-8")
        self.assertEqual(config.load_config(), {})
        path.write_text("{broken", encoding="utf-8")
        self.assertEqual(config.load_config(), {})


if __name__ == "__main__":
    unittest.main()
