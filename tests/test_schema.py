from __future__ import annotations

import unittest

from openpyxl import Workbook

from waste_ledger.schema import fold_text, header_text, is_generated_label, is_transferred_label, locate_schema


def sheet_with_header(header, header_row=1, title="150101 12345678"):
    wb = Workbook()
    ws = wb.active
    ws.title = title
    if header_row > 1:
        ws.cell(row=1, column=1, value="Průběžná evidence odpadů")
    for col, label in enumerate(header, start=1):
        ws.cell(row=header_row, column=col, value=label)
    return ws


class LocateSchemaTests(unittest.TestCase):
    def test_header_below_title_rows(self):
        ws = sheet_with_header(["Č.", "Datum", "Množství vzniku", "Množství předaného"], header_row=3)
        schema = locate_schema(ws)
        self.assertEqual(schema.header_row, 3)
        self.assertEqual(schema.first_data_row, 4)
        self.assertEqual(schema.date_column, 2)
        self.assertEqual(schema.amount_column, 3)
        self.assertEqual(schema.generated_column, 3)
        self.assertEqual(schema.transferred_column, 4)
        self.assertEqual(schema.max_column, 4)

    def test_labels_without_diacritics_are_recognised(self):
        ws = sheet_with_header(["Datum vzniku", "Mnozstvi vznikleho odpadu", "Mnozstvi predaneho odpadu"])
        schema = locate_schema(ws)
        self.assertEqual((schema.date_column, schema.generated_column, schema.transferred_column), (1, 2, 3))

    def test_last_date_column_in_header_row_wins(self):
        ws = sheet_with_header(["Datum", "Množství vzniku", "Datum předání"])
        schema = locate_schema(ws)
        self.assertEqual(schema.date_column, 3)
        self.assertEqual(schema.amount_column, 4)
        self.assertEqual(schema.generated_column, 2)

    def test_last_amount_columns_in_header_row_win(self):
        ws = sheet_with_header(["Datum", "Množství vzniku", "Množství předaného", "Množství vzniku (t)", "Předaného (t)"])
        schema = locate_schema(ws)
        self.assertEqual(schema.generated_column, 4)
        self.assertEqual(schema.transferred_column, 5)

    def test_generated_column_falls_back_to_third_column(self):
        ws = sheet_with_header(["Č.", "Datum", "Množství", "Poznámka"])
        schema = locate_schema(ws)
        self.assertEqual(schema.generated_column, 3)
        self.assertIsNone(schema.transferred_column)

    def test_amount_column_is_next_to_date_even_when_header_disagrees(self):
        ws = sheet_with_header(["Datum", "Poznámka", "Množství vzniku"])
        schema = locate_schema(ws)
        self.assertEqual(schema.generated_column, 3)
        self.assertEqual(schema.amount_column, 2)

    def test_missing_date_header_returns_none(self):
        ws = sheet_with_header(["Č.", "Den", "Množství vzniku"])
        self.assertIsNone(locate_schema(ws))

    def test_header_outside_scan_window_returns_none(self):
        ws = sheet_with_header(["Datum", "Množství vzniku"], header_row=8)
        self.assertIsNone(locate_schema(ws, scan_rows=5))
        self.assertEqual(locate_schema(ws, scan_rows=8).header_row, 8)

    def test_empty_sheet_returns_none(self):
        wb = Workbook()
        self.assertIsNone(locate_schema(wb.active))


class LabelTests(unittest.TestCase):
    def test_fold_text_strips_diacritics(self):
        self.assertEqual(fold_text("množství předaného"), "mnozstvi predaneho")

    def test_header_text_handles_non_strings(self):
        self.assertEqual(header_text(None), "")
        self.assertEqual(header_text(2024), "2024")
        self.assertEqual(header_text("  Datum  "), "datum")

    def test_transferred_label_is_not_a_generated_label(self):
        text = header_text("Množství předaného odpadu ze vzniklého")
        self.assertTrue(is_transferred_label(text))
        self.assertFalse(is_generated_label(text))


if __name__ == "__main__":
    unittest.main()
