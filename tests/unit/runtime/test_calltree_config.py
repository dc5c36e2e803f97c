"""Tests for config persistence and input sanitization.

Malformed or partial config files must load as safe defaults.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from calltree.runtime import config


class CalltreeConfigTests(unittest.TestCase):
    def test_missing_file_loads_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("calltree.runtime.config.CONFIG_PATH", Path(tmp) / "missing.json"):
                self.assertEqual(config.load_config(), {})
                self.assertEqual(config.load_calltree_config(), config.CalltreeConfig())

    def test_settings_round_trip_and_keep_unrelated_keys(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "nested" / "config.json"
            with mock.patch("calltree.runtime.config.CONFIG_PATH", config_path):
                self.assertTrue(config.save_config({"editor": "vim"}))
                settings = config.CalltreeConfig(
                    icons="nerd",
                    indent_guides=False,
                    resolve_symbols=True,
                    request_timeout=2.5,
                    auto_follow=False,
                )
                self.assertTrue(config.save_calltree_config(settings))

                self.assertEqual(config.load_calltree_config(), settings)
                self.assertEqual(config.load_config().get("editor"), "vim")

    def test_invalid_values_fall_back_per_key(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("calltree.runtime.config.CONFIG_PATH", config_path):
                config.save_config(
                    {
                        "icons": "sparkles",
                        "indent_guides": "yes",
                        "resolve_symbols": 1,
                        "request_timeout": True,
                        "auto_follow": None,
                    }
                )

                loaded = config.load_calltree_config()

            self.assertEqual(loaded, config.CalltreeConfig())

    def test_icon_alias_and_timeout_bounds(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("calltree.runtime.config.CONFIG_PATH", config_path):
                config.save_config({"icons": " Codicon ", "request_timeout": -3})
                loaded = config.load_calltree_config()
                self.assertEqual(loaded.icons, "codicons")
                self.assertEqual(loaded.request_timeout, config.DEFAULT_REQUEST_TIMEOUT)

                config.save_config({"request_timeout": 4})
                self.assertEqual(config.load_calltree_config().request_timeout, 4.0)

    def test_malformed_or_non_object_json_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("calltree.runtime.config.CONFIG_PATH", config_path):
                config_path.write_text("{not json", encoding="utf-8")
                self.assertEqual(config.load_config(), {})

                config_path.write_text("[1, 2]\n", encoding="utf-8")
                self.assertEqual(config.load_config(), {})

    def test_save_reports_unwritable_location(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "blocker"
            blocker.write_text("", encoding="utf-8")
            with mock.patch("calltree.runtime.config.CONFIG_PATH", blocker / "config.json"):
                self.assertFalse(config.save_config({"icons": "none"}))


if __name__ == "__main__":
    unittest.main()
