"""
Reconcile a batch of extracted records into a ledger workbook.

Per extracted item: find the partition sheet from the waste code and the
candidate identifiers, discover its header layout, then append every movement
row that is not already present. Problems with one item never abort the batch;
they are collected in the ReconciliationResult. Only an unreadable or
unwritable workbook fails the whole call.
"""

from __future__ import annotations

import io
import logging
import os
import tempfile
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Sequence

from openpyxl import load_workbook

from waste_ledger import __version__ as TOOL_VERSION
from waste_ledger.config import LedgerSettings
from waste_ledger.contracts import build_contract, build_run_summary
from waste_ledger.identifiers import extract_identifier_candidates
from waste_ledger.partitions import attempted_partition_names, find_partition
from waste_ledger.payload import (
    MOVEMENT_ROWS,
    ORIGINATOR,
    RECIPIENT,
    WASTE_CODE,
    WASTE_NAME,
    is_record,
    party_identifier,
    party_name,
)
from waste_ledger.schema import locate_schema
from waste_ledger.values import normalize_movement
from waste_ledger.window import AppendCursor, find_duplicate_row, find_first_empty_row
from waste_ledger.writer import detect_formats, target_cells_writable, write_movement

logger = logging.getLogger(__name__)

OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

SKIP_NOT_AN_OBJECT = "not_an_object"
SKIP_SCHEMA_NOT_FOUND = "schema_not_found"
SKIP_NO_MOVEMENT_ROWS = "no_movement_rows"
SKIP_MISSING_DATE = "missing_date"
SKIP_PARTITION_FULL = "partition_full"
SKIP_MERGED_TARGET = "merged_target"


@dataclass
class DuplicateRecord:
    date: str
    amount: str
    partition: str
    existing_row: int
    item_index: int


@dataclass
class PartitionNotFound:
    item_index: int
    waste_code: str
    waste_name: str
    recipient_id: str
    recipient_name: str
    originator_id: str
    originator_name: str
    identifiers: list[str]
    attempted_names: list[str]
    available_partitions: list[str]


@dataclass
class SkippedItem:
    item_index: int
    reason: str
    partition: str | None = None
    row_index: int | None = None
    detail: str = ""


@dataclass
class ReconciliationResult:
    partitions_modified: list[str] = field(default_factory=list)
    rows_added: int = 0
    duplicates_skipped: list[DuplicateRecord] = field(default_factory=list)
    partitions_not_found: list[PartitionNotFound] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)
    transferred_substitutions: int = 0

    def mark_modified(self, partition: str) -> None:
        if partition not in self.partitions_modified:
            self.partitions_modified.append(partition)

    def skip(self, item_index: int, reason: str, **details: Any) -> None:
        self.skipped.append(SkippedItem(item_index=item_index, reason=reason, **details))

    @property
    def needs_review(self) -> bool:
        return bool(self.partitions_not_found or self.skipped)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AugmentOutcome:
    success: bool
    buffer: bytes | None
    result: ReconciliationResult
    error: str | None = None


def build_not_found(item_index: int, record: dict, waste_code: str, candidates, partition_names: Sequence[str]) -> PartitionNotFound:
    return PartitionNotFound(
        item_index=item_index,
        waste_code=waste_code,
        waste_name=WASTE_NAME.text(record),
        recipient_id=party_identifier(record, RECIPIENT),
        recipient_name=party_name(record, RECIPIENT),
        originator_id=party_identifier(record, ORIGINATOR),
        originator_name=party_name(record, ORIGINATOR),
        identifiers=[item.identifier for item in candidates],
        attempted_names=attempted_partition_names(waste_code, candidates),
        available_partitions=list(partition_names),
    )


def reconcile_item(workbook, record: Any, item_index: int, result: ReconciliationResult, settings: LedgerSettings) -> int:
    """Append the movement rows of one extracted item; return how many rows were written."""
    if not is_record(record):
        logger.warning("Item %s is not an object; skipped", item_index)
        result.skip(item_index, SKIP_NOT_AN_OBJECT, detail=type(record).__name__)
        return 0

    waste_code = WASTE_CODE.text(record)
    candidates = extract_identifier_candidates(record)
    match = find_partition(waste_code, candidates, workbook.sheetnames)
    if match is None:
        missing = build_not_found(item_index, record, waste_code, candidates, workbook.sheetnames)
        logger.warning("No sheet for item %s; tried: %s", item_index, ", ".join(missing.attempted_names) or "[nothing]")
        result.partitions_not_found.append(missing)
        return 0

    sheet = workbook[match.partition_name]
    schema = locate_schema(sheet, settings.header_scan_rows)
    if schema is None:
        result.skip(item_index, SKIP_SCHEMA_NOT_FOUND, partition=sheet.title, detail=f"no date header in the first {settings.header_scan_rows} rows")
        return 0

    rows = MOVEMENT_ROWS.rows(record)
    if not rows:
        logger.warning("Item %s has no movement rows for '%s'", item_index, sheet.title)
        result.skip(item_index, SKIP_NO_MOVEMENT_ROWS, partition=sheet.title)
        return 0

    first_empty = find_first_empty_row(sheet, schema, settings.max_data_row)
    if first_empty is None:
        result.skip(item_index, SKIP_PARTITION_FULL, partition=sheet.title, detail=f"{len(rows)} movement rows not written")
        return 0

    formats = detect_formats(
        sheet,
        schema,
        first_empty,
        default_date_format=settings.default_date_format,
        default_number_format=settings.default_number_format,
    )
    cursor = AppendCursor(first_data_row=schema.first_data_row, next_row=first_empty, max_row=settings.max_data_row)
    written = 0
    for row_index, row in enumerate(rows):
        values = normalize_movement(row)
        if values is None:
            logger.warning("Movement row %s of item %s has no date; skipped", row_index, item_index)
            result.skip(item_index, SKIP_MISSING_DATE, partition=sheet.title, row_index=row_index)
            continue

        duplicate_row = find_duplicate_row(sheet, schema, cursor, values.date_value, values.amount_value, settings.tolerance)
        if duplicate_row is not None:
            logger.info("Skipping duplicate %s / %s in '%s' (row %s)", values.date_text, values.amount_text, sheet.title, duplicate_row)
            result.duplicates_skipped.append(
                DuplicateRecord(
                    date=values.date_text,
                    amount=values.amount_text,
                    partition=sheet.title,
                    existing_row=duplicate_row,
                    item_index=item_index,
                )
            )
            continue

        if not cursor.has_room:
            remaining = len(rows) - row_index
            logger.warning("'%s' is full at row %s; %s movement rows not written", sheet.title, cursor.max_row, remaining)
            result.skip(item_index, SKIP_PARTITION_FULL, partition=sheet.title, row_index=row_index, detail=f"{remaining} movement rows not written")
            break
        if not target_cells_writable(sheet, cursor.next_row, schema):
            logger.warning("Row %s of '%s' is covered by merged cells; stopped appending", cursor.next_row, sheet.title)
            result.skip(item_index, SKIP_MERGED_TARGET, partition=sheet.title, row_index=row_index, detail=f"row {cursor.next_row}")
            break

        write_movement(sheet, cursor.advance(), schema, values, formats)
        written += 1
        if values.used_transferred:
            result.transferred_substitutions += 1

    result.rows_added += written
    if written:
        result.mark_modified(sheet.title)
    logger.info("Item %s: %s of %s movement rows written to '%s'", item_index, written, len(rows), sheet.title)
    return written


def reconcile_workbook(workbook, records: Sequence[Any], settings: LedgerSettings | None = None) -> ReconciliationResult:
    settings = settings or LedgerSettings()
    result = ReconciliationResult()
    for item_index, record in enumerate(records):
        reconcile_item(workbook, record, item_index, result, settings)
    logger.info(
        "Reconciled %s items: %s rows added, %s duplicates, %s sheets not found",
        len(records),
        result.rows_added,
        len(result.duplicates_skipped),
        len(result.partitions_not_found),
    )
    return result


def load_ledger(buffer: bytes, keep_vba: bool = False):
    if buffer[: len(OLE_MAGIC)] == OLE_MAGIC:
        raise ValueError("Password-protected / encrypted or legacy .xls workbooks are not supported")
    try:
        return load_workbook(io.BytesIO(buffer), keep_vba=keep_vba)
    except Exception as exc:
        raise ValueError(f"Could not read workbook: {exc}") from exc


def serialize_ledger(workbook) -> bytes:
    stream = io.BytesIO()
    try:
        workbook.save(stream)
    except Exception as exc:
        raise ValueError(f"Could not write workbook: {exc}") from exc
    return stream.getvalue()


def augment_ledger(
    buffer: bytes,
    records: Sequence[Any],
    settings: LedgerSettings | None = None,
    keep_vba: bool = False,
) -> AugmentOutcome:
    try:
        workbook = load_ledger(buffer, keep_vba=keep_vba)
        result = reconcile_workbook(workbook, records, settings)
        output = serialize_ledger(workbook)
    except ValueError as exc:
        logger.error("Ledger augmentation failed: %s", exc)
        return AugmentOutcome(success=False, buffer=None, result=ReconciliationResult(), error=str(exc))
    return AugmentOutcome(success=True, buffer=output, result=result)


def execute_augment(
    input_path: Path,
    records: Sequence[Any],
    output_path: Path,
    settings: LedgerSettings | None = None,
) -> ReconciliationResult:
    outcome = augment_ledger(
        input_path.read_bytes(),
        records,
        settings=settings,
        keep_vba=input_path.suffix.lower() == ".xlsm",
    )
    if not outcome.success:
        raise ValueError(outcome.error)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{output_path.stem}.", suffix=output_path.suffix, dir=str(output_path.parent))
    os.close(fd)
    temp_path = Path(tmp_name)
    try:
        temp_path.write_bytes(outcome.buffer)
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return outcome.result


def review_warnings(result: ReconciliationResult) -> list[str]:
    warnings = []
    if result.partitions_not_found:
        names = sorted({name for item in result.partitions_not_found for name in item.attempted_names})
        warnings.append(
            f"{len(result.partitions_not_found)} extracted item(s) matched no ledger sheet"
            + (f" (tried: {', '.join(names)})" if names else "")
        )
    if result.duplicates_skipped:
        warnings.append(f"{len(result.duplicates_skipped)} movement row(s) already present and skipped")
    by_reason: dict[str, int] = {}
    for item in result.skipped:
        by_reason[item.reason] = by_reason.get(item.reason, 0) + 1
    for reason, count in sorted(by_reason.items()):
        warnings.append(f"{count} item(s) or row(s) skipped: {reason}")
    if result.transferred_substitutions:
        warnings.append(f"{result.transferred_substitutions} row(s) used the transferred amount because no generated amount was extracted")
    return warnings


def build_structured_summary(
    *,
    ledger_path: Path | None,
    records_path: Path | None,
    output_path: Path | None,
    result: ReconciliationResult,
    item_count: int,
    settings: LedgerSettings | None = None,
    dry_run: bool = False,
) -> dict[str, Any]:
    contract = build_contract("waste_ledger.augment_summary")
    warnings = review_warnings(result)
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "ledger_file": str(ledger_path) if ledger_path else None,
        "records_file": str(records_path) if records_path else None,
        "output_file": None if dry_run else (str(output_path) if output_path else None),
        "dry_run": dry_run,
        "settings": (settings or LedgerSettings()).to_dict(),
        "items_processed": item_count,
        "result": result.to_dict(),
        "needs_review": result.needs_review,
        "audit_notes": build_audit_notes(result, ledger_path.name if ledger_path else "ledger", item_count),
        "warnings": warnings,
        "assumptions": [
            "A sheet is named '<waste code> <IČO>'; recipient IČO is tried first, then originator, then any other IČO found",
            "'/'-separated dates with a first part <= 12 are month-first; all other dates are day-first",
            "Two-digit years below 50 are 20xx, others 19xx",
            "A row is a duplicate when its date and amount both match an existing row within 0.01",
        ],
        "run_summary": build_run_summary(
            command="augment",
            ledger_path=ledger_path,
            records_path=records_path,
            output_path=None if dry_run else output_path,
            warnings=warnings,
            metrics={
                "items_processed": item_count,
                "rows_added": result.rows_added,
                "duplicates_skipped": len(result.duplicates_skipped),
                "partitions_modified": len(result.partitions_modified),
                "partitions_not_found": len(result.partitions_not_found),
                "items_skipped": len(result.skipped),
            },
        ),
    }


def build_audit_notes(result: ReconciliationResult, ledger_title: str, item_count: int) -> str:
    notes = (
        f'Augmented from foundation document "{ledger_title}" with {item_count} extracted data items. '
        f"Sheets modified: {', '.join(result.partitions_modified) or 'none'}."
    )
    if result.duplicates_skipped:
        notes += f" Skipped {len(result.duplicates_skipped)} duplicate records."
    if result.partitions_not_found:
        notes += f" {len(result.partitions_not_found)} items need manual attention (sheet not found)."
    return notes
