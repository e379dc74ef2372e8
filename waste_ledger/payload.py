"""
Defensive access to extraction payloads.

Extraction output is treated as a generic JSON tree. Field names drifted over
time (Czech labels, transliterated snake_case, English schema names), so every
logical field is a FieldSpec: an ordered list of accessors tried until one
yields a present value. Helpers never raise on unexpected shapes; they return
"" / None / [] instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

Accessor = Callable[[dict], Any]


def is_record(value: Any) -> bool:
    return isinstance(value, dict)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, dict)):
        return len(value) > 0
    return True


def scalar_text(value: Any) -> str:
    """Render a scalar the way the JSON producer would have printed it."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if is_number(value):
        return str(value)
    if isinstance(value, str):
        return value
    return ""


def get_string(node: Any, key: str, default: str = "") -> str:
    if not is_record(node):
        return default
    text = scalar_text(node.get(key))
    return text if text else default


def get_nested_object(node: Any, key: str) -> dict | None:
    if not is_record(node):
        return None
    value = node.get(key)
    return value if is_record(value) else None


def get_list(node: Any, key: str) -> list:
    if not is_record(node):
        return []
    value = node.get(key)
    return value if isinstance(value, list) else []


def by_key(key: str) -> Accessor:
    def access(node: dict) -> Any:
        return node.get(key)

    return access


def by_folded_key(key: str) -> Accessor:
    folded = key.casefold()

    def access(node: dict) -> Any:
        for candidate, value in node.items():
            if isinstance(candidate, str) and candidate.casefold() == folded:
                return value
        return None

    return access


@dataclass(frozen=True)
class FieldSpec:
    name: str
    accessors: tuple[Accessor, ...]

    def resolve(self, node: Any) -> Any:
        if not is_record(node):
            return None
        for accessor in self.accessors:
            value = accessor(node)
            if is_present(value):
                return value
        return None

    def text(self, node: Any) -> str:
        return scalar_text(self.resolve(node)).strip()

    def record(self, node: Any) -> dict | None:
        value = self.resolve(node)
        return value if is_record(value) else None

    def rows(self, node: Any) -> list:
        value = self.resolve(node)
        return value if isinstance(value, list) else []


def field(name: str, *keys: str) -> FieldSpec:
    accessors = [by_key(key) for key in keys]
    accessors.extend(by_folded_key(key) for key in keys)
    return FieldSpec(name=name, accessors=tuple(accessors))


WASTE_CODE = field("waste_code", "kód odpadu", "kod_odpadu", "waste_code")
WASTE_NAME = field("waste_name", "název/druh odpadu", "nazev_druhu_odpadu", "waste_name")
WASTE_CATEGORY = field("waste_category", "kategorie odpadu", "kategorie_odpadu", "waste_category")
ORIGINATOR = field("originator", "původce", "puvod", "puvodce", "originator")
RECIPIENT = field("recipient", "odběratel", "odberatel", "recipient")
PARTY_ID = field("party_id", "IČO", "ico", "ičo", "company_id")
PARTY_NAME = field("party_name", "název", "nazev", "name")
MOVEMENT_ROWS = field("movement_rows", "tabulka", "tabulka_evidence", "tabulka_pohybu", "records")
ROW_DATE = field("date", "datum vzniku", "datum_vzniku", "datum", "date")
AMOUNT_GENERATED = field(
    "amount_generated",
    "množství vzniklého odpadu",
    "mnozstvi_vznikleho_odpadu",
    "waste_amount_generated",
)
AMOUNT_TRANSFERRED = field(
    "amount_transferred",
    "množství předaného odpadu",
    "mnozstvi_predaneho_odpadu",
    "waste_amount_transferred",
)


def party_identifier(record: Any, party: FieldSpec) -> str:
    return PARTY_ID.text(party.record(record))


def party_name(record: Any, party: FieldSpec) -> str:
    return PARTY_NAME.text(party.record(record))


def unwrap_extracted_records(payload: Any) -> list:
    """Accept a record list, one record, or a full extraction response."""
    if isinstance(payload, list):
        return payload
    if is_record(payload):
        nested = get_list(payload, "extracted_data")
        if nested or "extracted_data" in payload:
            return nested
        return [payload]
    raise ValueError("Extraction payload must be a JSON object or array")
