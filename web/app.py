#!/usr/bin/env python3
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import pandas as pd
import streamlit as st

from waste_ledger.config import LedgerSettings
from waste_ledger.loader import decode_text
from waste_ledger.payload import unwrap_extracted_records
from waste_ledger.reconcile import ReconciliationResult, augment_ledger, build_audit_notes

LEDGER_EXTS = {".xlsx", ".xlsm"}
RECORD_EXTS = {".json", ".jsonl"}
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLSM_MIME = "application/vnd.ms-excel.sheet.macroEnabled.12"

DUPLICATE_COLUMNS = ["partition", "date", "amount", "existing_row", "item_index"]
NOT_FOUND_COLUMNS = [
    "item_index",
    "waste_code",
    "waste_name",
    "recipient_id",
    "recipient_name",
    "originator_id",
    "originator_name",
    "attempted_names",
]
SKIPPED_COLUMNS = ["item_index", "reason", "partition", "row_index", "detail"]


def ensure_state() -> None:
    st.session_state.setdefault("outcome", None)
    st.session_state.setdefault("download_name", None)
    st.session_state.setdefault("item_count", 0)


def parse_records_bytes(raw: bytes, name: str) -> list[Any]:
    text, _ = decode_text(raw)
    if Path(name).suffix.lower() == ".jsonl":
        payload = [json.loads(line) for line in text.splitlines() if line.strip()]
    else:
        payload = json.loads(text)
    return unwrap_extracted_records(payload)


def augmented_filename(ledger_name: str) -> str:
    path = Path(ledger_name)
    suffix = path.suffix.lower() if path.suffix.lower() in LEDGER_EXTS else ".xlsx"
    return f"{path.stem}-augmented{suffix}"


def download_mime(filename: str) -> str:
    return XLSM_MIME if filename.lower().endswith(".xlsm") else XLSX_MIME


def duplicates_frame(result: ReconciliationResult) -> pd.DataFrame:
    rows = [
        {column: getattr(item, column) for column in DUPLICATE_COLUMNS}
        for item in result.duplicates_skipped
    ]
    return pd.DataFrame(rows, columns=DUPLICATE_COLUMNS)


def not_found_frame(result: ReconciliationResult) -> pd.DataFrame:
    rows = []
    for item in result.partitions_not_found:
        row = {column: getattr(item, column) for column in NOT_FOUND_COLUMNS}
        row["attempted_names"] = ", ".join(item.attempted_names)
        rows.append(row)
    return pd.DataFrame(rows, columns=NOT_FOUND_COLUMNS)


def skipped_frame(result: ReconciliationResult) -> pd.DataFrame:
    rows = [
        {column: getattr(item, column) for column in SKIPPED_COLUMNS}
        for item in result.skipped
    ]
    return pd.DataFrame(rows, columns=SKIPPED_COLUMNS)


def run_augment(ledger_bytes: bytes, ledger_name: str, records: list[Any], settings: Optional[LedgerSettings] = None):
    return augment_ledger(
        ledger_bytes,
        records,
        settings=settings,
        keep_vba=ledger_name.lower().endswith(".xlsm"),
    )


def set_visuals() -> None:
    st.set_page_config(page_title="waste-ledger", page_icon="📒", layout="wide", initial_sidebar_state="collapsed")
    st.markdown(
        """
        <style>
        .block-container {
            padding-top: 2rem;
            padding-bottom: 2rem;
            max-width: 1200px;
        }
        [data-testid="stDecoration"], [data-testid="stStatusWidget"] {
            display: none !important;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_results() -> None:
    outcome = st.session_state.get("outcome")
    if outcome is None:
        return
    if not outcome.success:
        st.error(outcome.error or "Augmentation failed.")
        return

    result = outcome.result
    st.subheader("Results")
    metrics = st.columns(4)
    metrics[0].metric("Rows added", result.rows_added)
    metrics[1].metric("Sheets modified", len(result.partitions_modified))
    metrics[2].metric("Duplicates skipped", len(result.duplicates_skipped))
    metrics[3].metric("Needs review", len(result.partitions_not_found) + len(result.skipped))

    st.caption(build_audit_notes(result, st.session_state["download_name"], st.session_state["item_count"]))
    if result.partitions_modified:
        st.markdown("**Sheets modified:** " + ", ".join(result.partitions_modified))
    if result.partitions_not_found:
        st.warning("Some extracted items matched no ledger sheet. Add the sheets or fix the identifiers, then run again.")
        st.dataframe(not_found_frame(result), width="stretch", hide_index=True)
    if result.skipped:
        st.caption("Skipped items and rows")
        st.dataframe(skipped_frame(result), width="stretch", hide_index=True)
    if result.duplicates_skipped:
        with st.expander(f"Duplicates skipped ({len(result.duplicates_skipped)})"):
            st.dataframe(duplicates_frame(result), width="stretch", hide_index=True)

    filename = st.session_state["download_name"]
    st.download_button(
        "Download augmented ledger",
        data=outcome.buffer,
        file_name=filename,
        mime=download_mime(filename),
        width="stretch",
    )


def main() -> None:
    set_visuals()
    ensure_state()

    st.title("waste-ledger")
    st.caption("Upload a ledger workbook and the extracted records, review what would change, and download the augmented ledger.")

    ledger_upload = st.file_uploader("Ledger workbook", type=[ext.lstrip(".") for ext in sorted(LEDGER_EXTS)])
    records_upload = st.file_uploader("Extracted records", type=[ext.lstrip(".") for ext in sorted(RECORD_EXTS)])
    submit = st.button("Augment", type="primary", width="stretch", disabled=not (ledger_upload and records_upload))

    if submit and ledger_upload and records_upload:
        try:
            records = parse_records_bytes(records_upload.getvalue(), records_upload.name)
        except ValueError as exc:
            st.error(f"Could not read extracted records: {exc}")
            return
        with st.spinner("Reconciling records into the ledger..."):
            st.session_state["outcome"] = run_augment(ledger_upload.getvalue(), ledger_upload.name, records)
        st.session_state["download_name"] = augmented_filename(ledger_upload.name)
        st.session_state["item_count"] = len(records)

    if st.session_state.get("outcome") is None:
        st.info("Supported here: .xlsx and .xlsm ledgers with .json or .jsonl extracted records")
        return

    render_results()


if __name__ == "__main__":
    main()
