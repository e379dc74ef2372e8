from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from waste_ledger import __version__ as TOOL_VERSION
from waste_ledger.config import load_settings, starter_config_text
from waste_ledger.inspection import STATUS_READY, build_inspection
from waste_ledger.loader import load_extracted_records
from waste_ledger.reconcile import augment_ledger, build_structured_summary, execute_augment, load_ledger

LEDGER_FORMATS = {".xlsx", ".xlsm"}
LEGACY_LEDGER_FORMATS = {".xls"}

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_NEEDS_REVIEW = 4

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class WasteLedgerArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def configure_logging(verbosity: int = 0, quiet: bool = False) -> None:
    if quiet or verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    root = logging.getLogger("waste_ledger")
    root.setLevel(level)
    if not any(getattr(handler, "_waste_ledger_cli", False) for handler in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._waste_ledger_cli = True
        root.addHandler(handler)


def timestamp_token() -> str:
    override = os.environ.get("WASTE_LEDGER_OUTPUT_STAMP")
    if override:
        return override
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def default_output_dir(input_path: Path) -> Path:
    return Path.cwd() / "waste-ledger-output" / f"{input_path.stem}-{timestamp_token()}"


def determine_output_dir(args: argparse.Namespace, input_path: Path) -> Path:
    if getattr(args, "out_dir", None):
        return Path(args.out_dir)
    return default_output_dir(input_path)


def write_text(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload, encoding="utf-8")


def write_json(path: Path, payload: Any) -> None:
    write_text(path, json_dumps(payload))


def remove_generated_at(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: "1970-01-01T00:00:00Z" if key == "generated_at" else remove_generated_at(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [remove_generated_at(item) for item in value]
    return value


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, UnicodeDecodeError):
        return EXIT_PARSE_FAILED
    if isinstance(exc, FileNotFoundError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, ValueError):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def check_ledger_suffix(path: Path) -> None:
    suffix = path.suffix.lower()
    if suffix in LEGACY_LEDGER_FORMATS:
        raise CliError(f"Legacy {suffix} ledgers are not supported. Save the workbook as .xlsx first.", EXIT_COMMAND_ERROR)
    if suffix not in LEDGER_FORMATS:
        raise CliError(
            f"Unsupported ledger type '{suffix or '[missing extension]'}'. Supported: {', '.join(sorted(LEDGER_FORMATS))}",
            EXIT_COMMAND_ERROR,
        )


def settings_for(args: argparse.Namespace):
    try:
        return load_settings(Path(args.config) if args.config else None)
    except ValueError as exc:
        raise CliError(str(exc), EXIT_COMMAND_ERROR) from exc


def safe_output_path(path: Path) -> Path:
    if path.exists():
        raise CliError(f"Refusing to overwrite existing output: {path}", EXIT_COMMAND_ERROR)
    return path


def augment_default_paths(args: argparse.Namespace, ledger_path: Path) -> tuple[Path, Path, Path]:
    if args.output_flag and args.output_positional:
        raise CliError("Use either positional output or --output, not both.", EXIT_COMMAND_ERROR)
    out_dir = determine_output_dir(args, ledger_path)
    explicit = args.output_flag or args.output_positional
    output_path = Path(explicit) if explicit else out_dir / f"{ledger_path.stem}-augmented{ledger_path.suffix}"
    if output_path.suffix.lower() != ledger_path.suffix.lower():
        raise CliError(f"Output must keep the ledger's {ledger_path.suffix} extension.", EXIT_COMMAND_ERROR)
    summary_path = Path(args.json_summary) if args.json_summary else out_dir / "augment-summary.json"
    return out_dir, output_path, summary_path


def render_augment_summary(summary: dict[str, Any]) -> str:
    result = summary.get("result", {})
    lines = [
        "waste-ledger augment",
        f"Ledger: {summary.get('ledger_file', '[unknown]')}",
        f"Records: {summary.get('records_file', '[unknown]')}",
        f"Output: {summary.get('output_file') or '[dry run]'}",
        f"Items processed: {summary.get('items_processed', 0)}",
        f"Rows added: {result.get('rows_added', 0)}",
        f"Sheets modified: {', '.join(result.get('partitions_modified', [])) or '[none]'}",
        f"Duplicates skipped: {len(result.get('duplicates_skipped', []))}",
    ]
    not_found = result.get("partitions_not_found", [])
    if not_found:
        lines.append("Sheets not found:")
        for item in not_found:
            tried = ", ".join(item["attempted_names"]) or "[no waste code]"
            lines.append(f"- item {item['item_index']} ({item['waste_name'] or item['waste_code'] or 'unnamed'}): tried {tried}")
    skipped = result.get("skipped", [])
    if skipped:
        lines.append("Skipped:")
        for item in skipped:
            where = f" in '{item['partition']}'" if item.get("partition") else ""
            lines.append(f"- item {item['item_index']}{where}: {item['reason']}")
    if summary.get("warnings"):
        lines.append("Warnings:")
        lines.extend(f"- {warning}" for warning in summary["warnings"])
    return "\n".join(lines) + "\n"


def render_inspection_text(report: dict[str, Any]) -> str:
    lines = [
        "waste-ledger inspect",
        f"Ledger: {report.get('ledger_file', '[unknown]')}",
        f"Sheets: {len(report.get('partitions', []))}",
    ]
    for item in report.get("partitions", []):
        if item["status"] != STATUS_READY:
            lines.append(f"- {item['partition']}: {item['status']}")
            continue
        schema = item["schema"]
        lines.append(
            f"- {item['partition']}: header row {schema['header_row']}, date col {schema['date_column']}, "
            f"amount col {schema['amount_column']}, {item['data_rows']} rows, next row {item['next_append_row']}"
        )
    return "\n".join(lines) + "\n"


def build_parser() -> argparse.ArgumentParser:
    parser = WasteLedgerArgumentParser(prog="waste-ledger", description="Append extracted waste movements to a ledger workbook.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    augment = subparsers.add_parser("augment", help="Append extracted records to a ledger workbook.")
    augment.add_argument("ledger", help="Ledger workbook (.xlsx/.xlsm)")
    augment.add_argument("records", help="Extracted records (.json/.jsonl)")
    augment.add_argument("output_positional", nargs="?", default=None, help="Optional output path")
    augment.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    augment.add_argument("--output", dest="output_flag", help="Explicit output path")
    augment.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    augment.add_argument("--json-summary", dest="json_summary", help="Explicit JSON summary output path")
    augment.add_argument("--config", help="JSON settings file")
    augment.add_argument("--dry-run", action="store_true", help="Reconcile without writing outputs")
    augment.add_argument("--fail-on-review", action="store_true", help="Return exit code 4 when items need manual attention")
    augment.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    augment.add_argument("-v", "--verbose", action="count", default=0, help="More logs (-vv for cell-level tracing)")

    inspect = subparsers.add_parser("inspect", help="Report the layout the engine sees in each sheet.")
    inspect.add_argument("ledger", help="Ledger workbook (.xlsx/.xlsm)")
    inspect.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    inspect.add_argument("--config", help="JSON settings file")
    inspect.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    inspect.add_argument("-v", "--verbose", action="count", default=0, help="More logs")

    config = subparsers.add_parser("config", help="Generate configuration.")
    config_subparsers = config.add_subparsers(dest="config_command", required=True)
    config_init = config_subparsers.add_parser("init", help="Write a starter config file.")
    config_init.add_argument("--path", default="waste-ledger.json", help="Config output path")

    subparsers.add_parser("version", help="Print version")
    return parser


def run_augment(args: argparse.Namespace) -> int:
    configure_logging(args.verbose, args.quiet)
    ledger_path = Path(args.ledger)
    records_path = Path(args.records)
    for path in (ledger_path, records_path):
        if not path.exists():
            eprint(f"File not found: {path}")
            return EXIT_COMMAND_ERROR
    try:
        check_ledger_suffix(ledger_path)
        settings = settings_for(args)
        out_dir, output_path, summary_path = augment_default_paths(args, ledger_path)
        if not args.dry_run:
            output_path = safe_output_path(output_path)
            summary_path = safe_output_path(summary_path)
        records = load_extracted_records(records_path)

        if args.dry_run:
            outcome = augment_ledger(
                ledger_path.read_bytes(),
                records,
                settings=settings,
                keep_vba=ledger_path.suffix.lower() == ".xlsm",
            )
            if not outcome.success:
                raise ValueError(outcome.error)
            result = outcome.result
        else:
            result = execute_augment(ledger_path, records, output_path, settings=settings)

        summary = build_structured_summary(
            ledger_path=ledger_path,
            records_path=records_path,
            output_path=output_path,
            result=result,
            item_count=len(records),
            settings=settings,
            dry_run=args.dry_run,
        )
        summary = remove_generated_at(summary)
        if not args.dry_run:
            write_json(summary_path, summary)
        if args.json:
            print(json_dumps(summary))
        else:
            emit_human(render_augment_summary(summary).rstrip(), quiet=args.quiet)
            emit_human(summary["audit_notes"], quiet=args.quiet)
            if not args.dry_run:
                emit_human(f"Augmented ledger: {output_path}", quiet=args.quiet)
                emit_human(f"Augment summary: {summary_path}", quiet=args.quiet)
        if result.needs_review and args.fail_on_review:
            return EXIT_NEEDS_REVIEW
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_inspect(args: argparse.Namespace) -> int:
    configure_logging(args.verbose, args.quiet)
    ledger_path = Path(args.ledger)
    if not ledger_path.exists():
        eprint(f"File not found: {ledger_path}")
        return EXIT_COMMAND_ERROR
    try:
        check_ledger_suffix(ledger_path)
        settings = settings_for(args)
        workbook = load_ledger(ledger_path.read_bytes())
        report = remove_generated_at(build_inspection(workbook, settings, ledger_path=ledger_path))
        if args.json:
            print(json_dumps(report))
        else:
            emit_human(render_inspection_text(report).rstrip(), quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_config_init(args: argparse.Namespace) -> int:
    config_path = Path(args.path)
    if config_path.exists():
        eprint(f"Refusing to overwrite existing config: {config_path}")
        return EXIT_COMMAND_ERROR
    if config_path.suffix.lower() != ".json":
        eprint("Config path must end in .json")
        return EXIT_COMMAND_ERROR
    write_text(config_path, starter_config_text())
    eprint(f"Config written: {config_path}")
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "augment":
            return run_augment(args)
        if args.command == "inspect":
            return run_inspect(args)
        if args.command == "config":
            if args.config_command == "init":
                return run_config_init(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
