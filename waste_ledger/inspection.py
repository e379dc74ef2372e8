"""Per-sheet report of what the engine would see in a ledger workbook."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from waste_ledger import __version__ as TOOL_VERSION
from waste_ledger.config import LedgerSettings
from waste_ledger.contracts import build_contract, build_run_summary
from waste_ledger.schema import locate_schema
from waste_ledger.window import find_first_empty_row
from waste_ledger.writer import detect_formats

logger = logging.getLogger(__name__)

STATUS_READY = "ready"
STATUS_SCHEMA_NOT_FOUND = "schema_not_found"
STATUS_PARTITION_FULL = "partition_full"


def inspect_partition(sheet, settings: LedgerSettings) -> dict[str, Any]:
    report: dict[str, Any] = {"partition": sheet.title, "status": STATUS_READY, "schema": None}
    schema = locate_schema(sheet, settings.header_scan_rows)
    if schema is None:
        report["status"] = STATUS_SCHEMA_NOT_FOUND
        return report

    report["schema"] = {
        "header_row": schema.header_row,
        "date_column": schema.date_column,
        "amount_column": schema.amount_column,
        "generated_column": schema.generated_column,
        "transferred_column": schema.transferred_column,
        "max_column": schema.max_column,
    }
    first_empty = find_first_empty_row(sheet, schema, settings.max_data_row)
    if first_empty is None:
        report["status"] = STATUS_PARTITION_FULL
        report["data_rows"] = settings.max_data_row - schema.first_data_row + 1
        report["next_append_row"] = None
        return report

    formats = detect_formats(
        sheet,
        schema,
        first_empty,
        default_date_format=settings.default_date_format,
        default_number_format=settings.default_number_format,
    )
    report["data_rows"] = first_empty - schema.first_data_row
    report["next_append_row"] = first_empty
    report["free_rows"] = settings.max_data_row - first_empty + 1
    report["formats"] = {
        "date": formats.date_format,
        "number": formats.number_format,
        "detected": formats.detected,
    }
    return report


def build_inspection(workbook, settings: LedgerSettings | None = None, ledger_path: Path | None = None) -> dict[str, Any]:
    settings = settings or LedgerSettings()
    partitions = [inspect_partition(sheet, settings) for sheet in workbook.worksheets]
    counts: dict[str, int] = {}
    for item in partitions:
        counts[item["status"]] = counts.get(item["status"], 0) + 1
    warnings = [
        f"'{item['partition']}': {item['status']}"
        for item in partitions
        if item["status"] != STATUS_READY
    ]
    contract = build_contract("waste_ledger.inspect")
    logger.info("Inspected %s sheets: %s", len(partitions), counts)
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "ledger_file": str(ledger_path) if ledger_path else None,
        "settings": settings.to_dict(),
        "partitions": partitions,
        "status_counts": counts,
        "warnings": warnings,
        "run_summary": build_run_summary(
            command="inspect",
            ledger_path=ledger_path,
            warnings=warnings,
            metrics={"partitions": len(partitions), **counts},
        ),
    }
