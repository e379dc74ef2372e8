"""
Normalise extracted dates and quantities into ledger-native values.

Dates become spreadsheet serial numbers (whole days since 1899-12-30).
Ambiguous D/M vs M/D input follows the rule the existing ledgers were
filled with: "/"-separated text whose first part is <= 12 is month-first,
everything else is day-first. Quantities keep their leading numeric run and
use "," as the decimal separator in text form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from waste_ledger.payload import AMOUNT_GENERATED, AMOUNT_TRANSFERRED, ROW_DATE, is_number, is_record, scalar_text

SERIAL_EPOCH = date(1899, 12, 30)
DATE_PARTS_RE = re.compile(r"(\d{1,2})[./](\d{1,2})[./](\d{2,4})")
ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
QUANTITY_RE = re.compile(r"^(\d+[.,]?\d*)")


@dataclass(frozen=True)
class MovementValues:
    date_text: str
    date_value: int | str
    amount_text: str
    amount_value: float | None
    used_transferred: bool = False


def expand_year(year: int) -> int:
    if year < 100:
        return year + (2000 if year < 50 else 1900)
    return year


def lenient_date(year: int, month: int, day: int) -> date:
    """Build a date, rolling overflowing months and days into the next period."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return date(year, month, 1) + timedelta(days=day - 1)


def _safe_date(year: int, month: int, day: int) -> date | None:
    # Placeholders such as 0000-00-00 fall outside the calendar; keep them as text.
    try:
        return lenient_date(year, month, day)
    except (ValueError, OverflowError):
        return None


def parse_ledger_date(text: str) -> date | None:
    text = text.strip()
    if not text:
        return None
    iso = ISO_DATE_RE.match(text)
    if iso:
        year, month, day = (int(part) for part in iso.groups())
        return _safe_date(year, month, day)
    parts = DATE_PARTS_RE.search(text)
    if not parts:
        return None
    first, second, year = (int(part) for part in parts.groups())
    year = expand_year(year)
    if "/" in text and first <= 12:
        month, day = first, second
    else:
        day, month = first, second
    return _safe_date(year, month, day)


def to_serial_date(value: date | datetime) -> float | int:
    if isinstance(value, datetime):
        delta = value - datetime.combine(SERIAL_EPOCH, datetime.min.time())
        return delta.days + delta.seconds / 86400
    return (value - SERIAL_EPOCH).days


def date_to_serial_or_text(text: str) -> int | str:
    parsed = parse_ledger_date(text)
    if parsed is None:
        return text.strip()
    return to_serial_date(parsed)


def clean_quantity(value: Any) -> str:
    text = scalar_text(value).strip()
    match = QUANTITY_RE.match(text)
    if not match:
        return ""
    return match.group(1).replace(".", ",", 1)


def quantity_to_number(cleaned: str) -> float | None:
    if not cleaned:
        return None
    try:
        return float(cleaned.replace(",", ".", 1))
    except ValueError:
        return None


def normalize_movement(row: Any) -> MovementValues | None:
    """Return the values to write for one movement row, or None when it has no date."""
    if not is_record(row):
        return None
    raw_date = ROW_DATE.resolve(row)
    date_text = scalar_text(raw_date).strip()
    if not date_text:
        return None

    generated = clean_quantity(AMOUNT_GENERATED.resolve(row))
    transferred = clean_quantity(AMOUNT_TRANSFERRED.resolve(row))
    used_transferred = False
    if not generated and transferred:
        generated = transferred
        used_transferred = True

    return MovementValues(
        date_text=date_text,
        date_value=date_to_serial_or_text(date_text),
        amount_text=generated,
        amount_value=quantity_to_number(generated),
        used_transferred=used_transferred,
    )


def serial_of_cell_value(value: Any) -> Any:
    """Existing date cells load as datetimes; compare them as serial numbers."""
    if isinstance(value, (datetime, date)):
        return to_serial_date(value)
    return value


def numbers_match(left: Any, right: Any, tolerance: float) -> bool:
    return is_number(left) and is_number(right) and abs(left - right) < tolerance
