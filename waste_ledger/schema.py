"""Locate the header row and the date / amount columns of a ledger sheet."""

from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass

from waste_ledger.config import DEFAULT_HEADER_SCAN_ROWS

logger = logging.getLogger(__name__)

DATE_TOKENS = ("datum vzniku", "datum")
GENERATED_TOKENS = (
    "mnozstvi vznikleho",
    "mnozstvi vznik",
    "vznikleho",
    "vznikeho",
)
TRANSFERRED_TOKENS = (
    "mnozstvi predaneho",
    "mnozstvi predan",
    "predaneho",
)
AMOUNT_TOKEN = "mnoz"
GENERATED_TOKEN = "vznik"
TRANSFERRED_TOKEN = "predan"
FALLBACK_GENERATED_COLUMN = 3


@dataclass(frozen=True)
class LedgerSchema:
    header_row: int
    date_column: int
    generated_column: int | None
    transferred_column: int | None
    max_column: int

    @property
    def first_data_row(self) -> int:
        return self.header_row + 1

    @property
    def amount_column(self) -> int:
        # Amounts are always written next to the date, whatever the header says.
        return self.date_column + 1


def fold_text(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def header_text(value) -> str:
    if value is None:
        return ""
    return fold_text(str(value).strip().lower())


def _contains_any(text: str, tokens: tuple[str, ...]) -> bool:
    return any(token in text for token in tokens)


def is_date_label(text: str) -> bool:
    return _contains_any(text, DATE_TOKENS)


def is_generated_label(text: str) -> bool:
    return _contains_any(text, GENERATED_TOKENS) and not _contains_any(text, TRANSFERRED_TOKENS)


def is_transferred_label(text: str) -> bool:
    return _contains_any(text, TRANSFERRED_TOKENS)


def read_header_row(sheet, row_idx: int, max_column: int) -> dict[int, str]:
    return {col: header_text(sheet.cell(row=row_idx, column=col).value) for col in range(1, max_column + 1)}


def fallback_generated_column(header: dict[int, str]) -> int | None:
    text = header.get(FALLBACK_GENERATED_COLUMN, "")
    if AMOUNT_TOKEN in text and TRANSFERRED_TOKEN not in text:
        return FALLBACK_GENERATED_COLUMN
    for col, text in header.items():
        if AMOUNT_TOKEN in text and GENERATED_TOKEN in text and TRANSFERRED_TOKEN not in text:
            return col
    return None


def fallback_transferred_column(header: dict[int, str]) -> int | None:
    for col, text in header.items():
        if AMOUNT_TOKEN in text and TRANSFERRED_TOKEN in text:
            return col
    return None


def locate_schema(sheet, scan_rows: int = DEFAULT_HEADER_SCAN_ROWS) -> LedgerSchema | None:
    max_column = sheet.max_column or 0
    header_row = None
    date_column = None
    generated_column = None
    transferred_column = None

    for row_idx in range(1, min(scan_rows, sheet.max_row) + 1):
        # Later matching cells override earlier ones.
        for col, text in read_header_row(sheet, row_idx, max_column).items():
            if not text:
                continue
            if is_date_label(text):
                header_row = row_idx
                date_column = col
                logger.debug("Date column at row %s, col %s: %r", row_idx, col, text)
            if is_generated_label(text):
                generated_column = col
            if is_transferred_label(text):
                transferred_column = col
        if header_row is not None:
            break

    if header_row is None or date_column is None:
        logger.warning("No header row with a date column in the first %s rows of '%s'", scan_rows, sheet.title)
        return None

    header = read_header_row(sheet, header_row, max_column)
    if generated_column is None:
        generated_column = fallback_generated_column(header)
    if transferred_column is None:
        transferred_column = fallback_transferred_column(header)

    schema = LedgerSchema(
        header_row=header_row,
        date_column=date_column,
        generated_column=generated_column,
        transferred_column=transferred_column,
        max_column=max_column,
    )
    logger.info(
        "Schema for '%s': header row %s, date col %s, generated col %s, transferred col %s",
        sheet.title,
        header_row,
        date_column,
        generated_column,
        transferred_column,
    )
    if generated_column is not None and generated_column != schema.amount_column:
        logger.warning(
            "Amount-generated header of '%s' is in column %s but amounts are written to column %s",
            sheet.title,
            generated_column,
            schema.amount_column,
        )
    return schema
