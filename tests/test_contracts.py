from __future__ import annotations

import io
import unittest
from datetime import datetime
from pathlib import Path

from openpyxl import Workbook

from waste_ledger.contracts import CONTRACT_VERSIONS, build_contract, build_run_summary
from waste_ledger.inspection import build_inspection
from waste_ledger.reconcile import augment_ledger, build_structured_summary


class ContractTests(unittest.TestCase):
    def test_known_contracts_are_versioned(self):
        for name, version in CONTRACT_VERSIONS.items():
            with self.subTest(name=name):
                self.assertEqual(build_contract(name), {"name": name, "version": version})

    def test_unknown_contract_raises(self):
        with self.assertRaises(KeyError):
            build_contract("waste_ledger.nope")

    def test_run_summary_shape(self):
        summary = build_run_summary(
            command="augment",
            ledger_path=Path("ledger.xlsx"),
            records_path=Path("records.json"),
            metrics={"rows_added": 2},
            warnings=["one"],
        )
        self.assertEqual(summary["tool"], "waste-ledger")
        self.assertEqual(summary["status"], "ok")
        self.assertEqual(summary["ledger_file"], "ledger.xlsx")
        self.assertEqual(summary["records_file"], "records.json")
        self.assertIsNone(summary["output_file"])
        self.assertEqual(summary["warnings_count"], 1)
        self.assertEqual(summary["metrics"], {"rows_added": 2})
        self.assertTrue(summary["generated_at"].endswith("Z"))

    def test_augment_and_inspect_documents_carry_their_contracts(self):
        wb = Workbook()
        ws = wb.active
        ws.title = "150101 12345678"
        ws.append(["Datum", "Množství vzniku"])
        ws.append([datetime(2025, 1, 1), 1.0])
        stream = io.BytesIO()
        wb.save(stream)

        outcome = augment_ledger(stream.getvalue(), [])
        summary = build_structured_summary(
            ledger_path=Path("ledger.xlsx"),
            records_path=None,
            output_path=None,
            result=outcome.result,
            item_count=0,
        )
        report = build_inspection(wb)
        self.assertEqual(summary["schema_version"], CONTRACT_VERSIONS["waste_ledger.augment_summary"])
        self.assertEqual(summary["run_summary"]["command"], "augment")
        self.assertEqual(report["contract"]["name"], "waste_ledger.inspect")
        self.assertEqual(report["run_summary"]["command"], "inspect")


if __name__ == "__main__":
    unittest.main()
