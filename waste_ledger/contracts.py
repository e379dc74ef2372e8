"""Versioned contracts for the JSON documents waste-ledger emits."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

CONTRACT_VERSIONS = {
    "waste_ledger.augment_summary": "1.0.0",
    "waste_ledger.inspect": "1.0.0",
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str) -> dict[str, str]:
    if name not in CONTRACT_VERSIONS:
        raise KeyError(f"Unknown contract: {name}")
    return {"name": name, "version": CONTRACT_VERSIONS[name]}


def build_run_summary(
    *,
    command: str,
    ledger_path: Path | None,
    status: str = "ok",
    records_path: Path | None = None,
    output_path: Path | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "tool": "waste-ledger",
        "command": command,
        "status": status,
        "generated_at": utc_now_iso(),
        "ledger_file": str(ledger_path) if ledger_path else None,
        "records_file": str(records_path) if records_path else None,
        "output_file": str(output_path) if output_path else None,
        "warnings_count": len(warnings or []),
        "warnings": list(warnings or []),
        "metrics": metrics or {},
    }
