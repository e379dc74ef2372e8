"""Append window of a ledger sheet and the duplicate filter over it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from waste_ledger.config import DEFAULT_MAX_DATA_ROW, DEFAULT_TOLERANCE
from waste_ledger.payload import is_number, scalar_text
from waste_ledger.schema import LedgerSchema
from waste_ledger.values import numbers_match, serial_of_cell_value

logger = logging.getLogger(__name__)


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def find_first_empty_row(sheet, schema: LedgerSchema, max_row: int = DEFAULT_MAX_DATA_ROW) -> int | None:
    """First blank cell of the date column below the header, or None when the bound is reached."""
    row_idx = schema.first_data_row
    while row_idx <= max_row:
        if is_blank(sheet.cell(row=row_idx, column=schema.date_column).value):
            return row_idx
        row_idx += 1
    logger.warning("No empty row in '%s' up to row %s", sheet.title, max_row)
    return None


@dataclass
class AppendCursor:
    first_data_row: int
    next_row: int
    max_row: int = DEFAULT_MAX_DATA_ROW

    @property
    def has_room(self) -> bool:
        return self.next_row <= self.max_row

    @property
    def filled_rows(self) -> range:
        return range(self.first_data_row, self.next_row)

    def advance(self) -> int:
        written = self.next_row
        self.next_row += 1
        return written


def comparable_text(value: Any) -> str:
    if value is None:
        return ""
    if is_number(value):
        return scalar_text(value)
    return str(value).strip()


def dates_match(candidate: Any, existing: Any, tolerance: float) -> bool:
    existing = serial_of_cell_value(existing)
    if is_number(candidate) and is_number(existing):
        return numbers_match(candidate, existing, tolerance)
    return comparable_text(candidate) == comparable_text(existing)


def amounts_match(candidate: Any, existing: Any, tolerance: float) -> bool:
    if is_number(candidate) and is_number(existing):
        return numbers_match(candidate, existing, tolerance)
    return comparable_text(candidate).replace(",", ".", 1) == comparable_text(existing).replace(",", ".", 1)


def find_duplicate_row(
    sheet,
    schema: LedgerSchema,
    cursor: AppendCursor,
    date_value: Any,
    amount_value: Any,
    tolerance: float = DEFAULT_TOLERANCE,
) -> int | None:
    for row_idx in cursor.filled_rows:
        existing_date = sheet.cell(row=row_idx, column=schema.date_column).value
        existing_amount = sheet.cell(row=row_idx, column=schema.amount_column).value
        if dates_match(date_value, existing_date, tolerance) and amounts_match(amount_value, existing_amount, tolerance):
            logger.debug("Duplicate of row %s in '%s': %r / %r", row_idx, sheet.title, existing_date, existing_amount)
            return row_idx
    return None
