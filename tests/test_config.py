from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from waste_ledger.config import LedgerSettings, load_settings, settings_from_mapping, starter_config_text


class LoadSettingsTests(unittest.TestCase):
    def test_no_config_gives_defaults(self):
        settings = load_settings(None)
        self.assertEqual(settings, LedgerSettings())
        self.assertEqual(settings.max_data_row, 1000)
        self.assertEqual(settings.header_scan_rows, 20)
        self.assertEqual(settings.tolerance, 0.01)

    def test_json_overrides(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "waste-ledger.json"
            path.write_text(json.dumps({"max_data_row": 500, "tolerance": 0, "default_date_format": "dd.mm.yyyy"}), encoding="utf-8")
            settings = load_settings(path)
        self.assertEqual(settings.max_data_row, 500)
        self.assertEqual(settings.tolerance, 0.0)
        self.assertIsInstance(settings.tolerance, float)
        self.assertEqual(settings.default_date_format, "dd.mm.yyyy")
        self.assertEqual(settings.default_number_format, "0.00")

    def test_missing_config_is_an_error(self):
        with self.assertRaisesRegex(ValueError, "Config not found"):
            load_settings(Path("/nonexistent/waste-ledger.json"))

    def test_yaml_is_rejected_honestly(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "waste-ledger.yml"
            path.write_text("max_data_row: 10\n", encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "YAML configs are not supported yet"):
                load_settings(path)

    def test_non_object_root_is_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "waste-ledger.json"
            path.write_text("[1, 2]", encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "JSON object"):
                load_settings(path)

    def test_invalid_json_is_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "waste-ledger.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "Could not read config"):
                load_settings(path)


class ValidationTests(unittest.TestCase):
    def test_unknown_keys(self):
        with self.assertRaisesRegex(ValueError, "Unknown config keys: max_rows"):
            settings_from_mapping({"max_rows": 10})

    def test_wrong_types(self):
        with self.assertRaisesRegex(ValueError, "must be int"):
            settings_from_mapping({"max_data_row": "1000"})
        with self.assertRaisesRegex(ValueError, "must be int"):
            settings_from_mapping({"header_scan_rows": True})
        with self.assertRaisesRegex(ValueError, "must not be negative"):
            settings_from_mapping({"tolerance": -0.5})
        with self.assertRaisesRegex(ValueError, "must not be blank"):
            settings_from_mapping({"default_number_format": " "})

    def test_row_bound_must_exceed_scan_window(self):
        with self.assertRaisesRegex(ValueError, "greater than 'header_scan_rows'"):
            settings_from_mapping({"header_scan_rows": 20, "max_data_row": 20})

    def test_starter_config_round_trips_to_defaults(self):
        self.assertEqual(settings_from_mapping(json.loads(starter_config_text())), LedgerSettings())


if __name__ == "__main__":
    unittest.main()
