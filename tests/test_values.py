from __future__ import annotations

import unittest
from datetime import date, datetime

from waste_ledger.values import (
    clean_quantity,
    date_to_serial_or_text,
    normalize_movement,
    parse_ledger_date,
    quantity_to_number,
    serial_of_cell_value,
    to_serial_date,
)


class DateTests(unittest.TestCase):
    def test_dotted_dates_are_day_first(self):
        self.assertEqual(date_to_serial_or_text("03.04.2024"), 45385)
        self.assertEqual(date_to_serial_or_text("1.1.2025"), 45658)

    def test_slashed_dates_with_small_first_part_are_month_first(self):
        self.assertEqual(date_to_serial_or_text("03/04/2024"), 45355)

    def test_slashed_dates_with_large_first_part_are_day_first(self):
        self.assertEqual(parse_ledger_date("13/04/2024"), date(2024, 4, 13))

    def test_two_digit_years_pivot_at_fifty(self):
        self.assertEqual(parse_ledger_date("1.1.25"), date(2025, 1, 1))
        self.assertEqual(parse_ledger_date("1.1.75"), date(1975, 1, 1))

    def test_iso_dates_are_accepted(self):
        self.assertEqual(date_to_serial_or_text("2024-04-03"), 45385)

    def test_date_inside_longer_text(self):
        self.assertEqual(parse_ledger_date("svoz dne 3.4.2024 ráno"), date(2024, 4, 3))

    def test_overflowing_day_rolls_into_next_month(self):
        self.assertEqual(parse_ledger_date("32.1.2024"), date(2024, 2, 1))
        self.assertEqual(parse_ledger_date("1.13.2024"), date(2025, 1, 1))

    def test_unparseable_date_is_kept_as_text(self):
        self.assertEqual(date_to_serial_or_text(" neuvedeno "), "neuvedeno")
        self.assertIsNone(parse_ledger_date(""))

    def test_out_of_calendar_dates_are_kept_as_text(self):
        self.assertIsNone(parse_ledger_date("0000-00-00"))
        self.assertIsNone(parse_ledger_date("1.13.9999"))
        self.assertEqual(date_to_serial_or_text("0000-00-00"), "0000-00-00")
        self.assertEqual(date_to_serial_or_text("1.13.9999"), "1.13.9999")

    def test_serials(self):
        self.assertEqual(to_serial_date(date(1900, 3, 1)), 61)
        self.assertEqual(to_serial_date(datetime(2024, 4, 3, 12, 0)), 45385.5)
        self.assertEqual(serial_of_cell_value(datetime(2025, 1, 1)), 45658)
        self.assertEqual(serial_of_cell_value("text"), "text")


class QuantityTests(unittest.TestCase):
    def test_leading_number_is_kept_with_comma_decimal(self):
        self.assertEqual(clean_quantity("12.5 t"), "12,5")
        self.assertEqual(clean_quantity("3,1 t"), "3,1")
        self.assertEqual(clean_quantity(7), "7")
        self.assertEqual(clean_quantity(10.0), "10")
        self.assertEqual(clean_quantity(0.25), "0,25")

    def test_non_numeric_quantity_is_blank(self):
        self.assertEqual(clean_quantity("cca 5"), "")
        self.assertEqual(clean_quantity(None), "")
        self.assertEqual(clean_quantity(True), "")

    def test_quantity_to_number(self):
        self.assertEqual(quantity_to_number("12,5"), 12.5)
        self.assertEqual(quantity_to_number("10"), 10.0)
        self.assertIsNone(quantity_to_number(""))


class NormalizeMovementTests(unittest.TestCase):
    def test_generated_amount(self):
        values = normalize_movement({"datum vzniku": "1.1.2025", "množství vzniklého odpadu": "10,00"})
        self.assertEqual(values.date_value, 45658)
        self.assertEqual(values.amount_text, "10,00")
        self.assertEqual(values.amount_value, 10.0)
        self.assertFalse(values.used_transferred)

    def test_transferred_amount_substitutes_missing_generated(self):
        values = normalize_movement({"datum": "2.1.2025", "mnozstvi_vznikleho_odpadu": "", "mnozstvi_predaneho_odpadu": "4.5"})
        self.assertEqual(values.amount_text, "4,5")
        self.assertEqual(values.amount_value, 4.5)
        self.assertTrue(values.used_transferred)

    def test_zero_generated_amount_is_kept(self):
        values = normalize_movement({"date": "2.1.2025", "waste_amount_generated": 0, "waste_amount_transferred": 3})
        self.assertEqual(values.amount_value, 0.0)
        self.assertFalse(values.used_transferred)

    def test_row_without_amounts_writes_blank_amount(self):
        values = normalize_movement({"date": "2.1.2025"})
        self.assertEqual(values.amount_text, "")
        self.assertIsNone(values.amount_value)

    def test_row_without_date_is_rejected(self):
        self.assertIsNone(normalize_movement({"množství vzniklého odpadu": "1"}))
        self.assertIsNone(normalize_movement({"datum vzniku": "  "}))
        self.assertIsNone(normalize_movement("1.1.2025"))


if __name__ == "__main__":
    unittest.main()
