"""
Load extracted records from .json or .jsonl files.

The extraction step is not always careful about encodings, so the bytes are
decoded as UTF-8 first and then with whatever chardet guesses. Czech exports
from older tools are frequently cp1250.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import chardet

from waste_ledger.payload import unwrap_extracted_records

logger = logging.getLogger(__name__)

RECORD_FORMATS = {".json", ".jsonl"}


def detect_encoding_info(raw: bytes) -> dict[str, Any]:
    result = chardet.detect(raw)
    detected = result.get("encoding") or "unknown"
    return {
        "detected": detected,
        "confidence": round(result.get("confidence") or 0.0, 2),
        "is_utf8": detected.upper().replace("-", "") in ("UTF8", "UTF8SIG", "ASCII"),
    }


def decode_text(raw: bytes) -> tuple[str, str]:
    """Return (text, encoding_used)."""
    try:
        return raw.decode("utf-8-sig"), "utf-8"
    except UnicodeDecodeError:
        pass
    info = detect_encoding_info(raw)
    encoding = info["detected"]
    if encoding != "unknown":
        try:
            text = raw.decode(encoding)
            logger.info("Records decoded as %s (confidence %s)", encoding, info["confidence"])
            return text.lstrip("\ufeff"), encoding
        except (LookupError, UnicodeDecodeError):
            logger.debug("chardet guess %s did not decode cleanly", encoding)
    logger.warning("Could not detect the records encoding; decoding as cp1252 with replacement")
    return raw.decode("cp1252", errors="replace"), "cp1252"


def _parse_jsonl(text: str) -> list[Any]:
    records: list[Any] = []
    for line_num, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON on line {line_num}: {exc}") from exc
    return records


def load_extracted_records(path: Path) -> list[Any]:
    """Read an extracted-records file and return the list of extracted items."""
    path = Path(path)
    if not path.exists():
        raise ValueError(f"Records file not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in RECORD_FORMATS:
        raise ValueError(f"Unsupported records format '{suffix or '[none]'}'. Use .json or .jsonl.")

    text, _ = decode_text(path.read_bytes())
    if suffix == ".jsonl":
        return unwrap_extracted_records(_parse_jsonl(text))
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc
    return unwrap_extracted_records(payload)
