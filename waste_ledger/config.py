"""Engine settings and the JSON config file that overrides them."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

SUPPORTED_CONFIG_SUFFIXES = {".json", ".yml", ".yaml"}

DEFAULT_HEADER_SCAN_ROWS = 20
DEFAULT_MAX_DATA_ROW = 1000
DEFAULT_TOLERANCE = 0.01
DEFAULT_DATE_FORMAT = "d.m.yyyy"
DEFAULT_NUMBER_FORMAT = "0.00"


@dataclass(frozen=True)
class LedgerSettings:
    header_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS
    max_data_row: int = DEFAULT_MAX_DATA_ROW
    tolerance: float = DEFAULT_TOLERANCE
    default_date_format: str = DEFAULT_DATE_FORMAT
    default_number_format: str = DEFAULT_NUMBER_FORMAT

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _coerce(name: str, value: Any, expected: type) -> Any:
    if expected is float and isinstance(value, int) and not isinstance(value, bool):
        value = float(value)
    if isinstance(value, bool) or not isinstance(value, expected):
        raise ValueError(f"Config key '{name}' must be {expected.__name__}, got {type(value).__name__}")
    if expected is int and value < 1:
        raise ValueError(f"Config key '{name}' must be a positive integer")
    if expected is float and value < 0:
        raise ValueError(f"Config key '{name}' must not be negative")
    if expected is str and not value.strip():
        raise ValueError(f"Config key '{name}' must not be blank")
    return value


def settings_from_mapping(payload: dict[str, Any]) -> LedgerSettings:
    known = {item.name: item for item in fields(LedgerSettings)}
    unknown = sorted(set(payload) - set(known))
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    kwargs = {}
    for name, value in payload.items():
        expected = {"int": int, "float": float, "str": str}[known[name].type]
        kwargs[name] = _coerce(name, value, expected)
    settings = LedgerSettings(**kwargs)
    if settings.max_data_row <= settings.header_scan_rows:
        raise ValueError("Config key 'max_data_row' must be greater than 'header_scan_rows'")
    return settings


def load_settings(config_path: Path | None) -> LedgerSettings:
    if config_path is None:
        return LedgerSettings()
    if not config_path.exists():
        raise ValueError(f"Config not found: {config_path}")
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError("Config must be .json, .yml, or .yaml")
    if suffix in {".yml", ".yaml"}:
        raise ValueError("YAML configs are not supported yet. Use JSON for now.")
    try:
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    except Exception as exc:
        raise ValueError(f"Could not read config: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Config root must be a JSON object.")
    return settings_from_mapping(payload)


def starter_config_text() -> str:
    return json.dumps(LedgerSettings().to_dict(), indent=2) + "\n"
