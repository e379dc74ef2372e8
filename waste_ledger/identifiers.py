"""Collect candidate tax identifiers (IČO) from one extracted record."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterator

from waste_ledger.payload import ORIGINATOR, RECIPIENT, is_record, party_identifier

logger = logging.getLogger(__name__)

RECIPIENT_SOURCE = "recipient"
ORIGINATOR_SOURCE = "originator"
DISCOVERED_SOURCE = "discovered"

IDENTIFIER_KEY_TOKENS = ("ico", "ičo", "company_id")
TRUNCATION_MARK = "…"
EIGHT_DIGITS_RE = re.compile(r"\d{8}")
SHORT_IDENTIFIER_RE = re.compile(r"^\d{6,8}$")
SEPARATOR_RE = re.compile(r"[.\s…]")
MIN_PRIMARY_LENGTH = 6


@dataclass(frozen=True)
class IdentifierCandidate:
    identifier: str
    source: str


def strip_separators(value: str) -> str:
    return SEPARATOR_RE.sub("", value)


def looks_like_tax_id(digits: str) -> bool:
    return len(digits) == 8 and digits[0] != "0" and 10_000_000 <= int(digits) <= 99_999_999


def _children(node: Any) -> Iterator[tuple[str, Any]]:
    if is_record(node):
        for key, value in node.items():
            yield str(key), value
    elif isinstance(node, list):
        for index, value in enumerate(node):
            yield str(index), value


def _is_identifier_key(key: str) -> bool:
    lowered = key.lower()
    return any(token in lowered for token in IDENTIFIER_KEY_TOKENS)


def collect_potential_identifiers(node: Any, found: dict[str, None] | None = None) -> dict[str, None]:
    """Walk the whole tree and return every plausible identifier, in discovery order."""
    if found is None:
        found = {}
    for key, value in _children(node):
        if isinstance(value, str):
            if _is_identifier_key(key):
                cleaned = strip_separators(value)
                for match in EIGHT_DIGITS_RE.findall(cleaned):
                    found.setdefault(match, None)
                if SHORT_IDENTIFIER_RE.match(cleaned):
                    found.setdefault(cleaned.zfill(8), None)
            for match in EIGHT_DIGITS_RE.findall(value):
                if looks_like_tax_id(match):
                    found.setdefault(match, None)
        elif is_record(value) or isinstance(value, list):
            collect_potential_identifiers(value, found)
    return found


def clean_primary_identifier(raw: str) -> str:
    """Return the usable form of a recipient/originator id, or "" when truncated or too short."""
    if not raw or TRUNCATION_MARK in raw:
        return ""
    cleaned = strip_separators(raw)
    if len(cleaned) < MIN_PRIMARY_LENGTH:
        return ""
    return cleaned


def extract_identifier_candidates(record: Any) -> list[IdentifierCandidate]:
    discovered = collect_potential_identifiers(record)
    candidates: list[IdentifierCandidate] = []
    for source, party in ((RECIPIENT_SOURCE, RECIPIENT), (ORIGINATOR_SOURCE, ORIGINATOR)):
        cleaned = clean_primary_identifier(party_identifier(record, party))
        if not cleaned:
            continue
        discovered.pop(cleaned, None)
        if any(item.identifier == cleaned for item in candidates):
            continue
        candidates.append(IdentifierCandidate(cleaned, source))
    for identifier in discovered:
        if len(identifier) == 8:
            candidates.append(IdentifierCandidate(identifier, DISCOVERED_SOURCE))
    logger.debug("Identifier candidates: %s", [f"{item.identifier} ({item.source})" for item in candidates])
    return candidates
