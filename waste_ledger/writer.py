"""Style and write appended movement rows on a ledger sheet."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from openpyxl.cell.cell import MergedCell
from openpyxl.styles import Alignment, Border, PatternFill, Side

from waste_ledger.config import DEFAULT_DATE_FORMAT, DEFAULT_NUMBER_FORMAT
from waste_ledger.schema import LedgerSchema
from waste_ledger.values import MovementValues

logger = logging.getLogger(__name__)

GENERAL_FORMAT = "General"
THIN_BLACK = Side(style="thin", color="000000")
ROW_BORDER = Border(left=THIN_BLACK, right=THIN_BLACK, top=THIN_BLACK, bottom=THIN_BLACK)
WHITE_FILL = PatternFill("solid", fgColor="FFFFFF")


@dataclass(frozen=True)
class CellFormats:
    date_format: str
    number_format: str
    detected: bool


def _usable_format(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip() or value == GENERAL_FORMAT:
        return None
    return value


def detect_formats(
    sheet,
    schema: LedgerSchema,
    first_empty_row: int,
    default_date_format: str = DEFAULT_DATE_FORMAT,
    default_number_format: str = DEFAULT_NUMBER_FORMAT,
) -> CellFormats:
    """Reuse the number formats of the first data row; fall back to the ledger defaults."""
    date_format = number_format = None
    if schema.first_data_row < first_empty_row:
        date_format = _usable_format(sheet.cell(row=schema.first_data_row, column=schema.date_column).number_format)
        number_format = _usable_format(sheet.cell(row=schema.first_data_row, column=schema.amount_column).number_format)
    return CellFormats(
        date_format=date_format or default_date_format,
        number_format=number_format or default_number_format,
        detected=date_format is not None or number_format is not None,
    )


def style_row(sheet, row_idx: int, max_column: int) -> None:
    """Give every cell of the row a thin black border and a white background."""
    for col in range(1, max_column + 1):
        cell = sheet.cell(row=row_idx, column=col)
        if isinstance(cell, MergedCell):
            continue
        cell.border = ROW_BORDER
        try:
            cell.fill = WHITE_FILL
        except (AttributeError, TypeError, ValueError) as exc:
            logger.debug("Could not set fill on %s: %s", cell.coordinate, exc)


def _write_cell(sheet, row_idx: int, col: int, value: Any, number_format: str) -> None:
    cell = sheet.cell(row=row_idx, column=col)
    cell.value = value
    cell.number_format = number_format
    cell.alignment = Alignment(horizontal="right", vertical=cell.alignment.vertical)


def target_cells_writable(sheet, row_idx: int, schema: LedgerSchema) -> bool:
    return not any(
        isinstance(sheet.cell(row=row_idx, column=col), MergedCell)
        for col in (schema.date_column, schema.amount_column)
    )


def write_movement(sheet, row_idx: int, schema: LedgerSchema, values: MovementValues, formats: CellFormats) -> None:
    style_row(sheet, row_idx, max(schema.max_column, schema.amount_column))
    _write_cell(sheet, row_idx, schema.date_column, values.date_value, formats.date_format)
    _write_cell(sheet, row_idx, schema.amount_column, values.amount_value, formats.number_format)
    logger.debug(
        "Row %s of '%s': date %r -> %r, amount %r -> %r",
        row_idx,
        sheet.title,
        values.date_text,
        values.date_value,
        values.amount_text,
        values.amount_value,
    )
