from __future__ import annotations

import argparse
import csv
import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from record_match.errors import RecordMatchError
from record_match.logging import setup_logging
from record_match.models import ClassifiedRecord, ComparisonResult, Record
from record_match.options import CompareOptions, DedupeOptions


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    setup_logging(level=args.log_level, log_file=args.log_file)
    try:
        if args.command == "compare":
            run_compare(args)
        elif args.command == "dedupe":
            run_dedupe(args)
    except (RecordMatchError, ValidationError) as exc:
        logger.error(str(exc))
        description = getattr(exc, "description", None)
        if description:
            logger.error(description)
        raise SystemExit(2) from exc


def run_compare(args: argparse.Namespace) -> None:
    overrides: dict[str, Any] = {
        "fields_to_match": args.key,
        "except_when_mix": args.except_fields,
        "skip_fields": args.skip_fields,
    }
    for name, value in (
        ("resolve", args.resolve),
        ("prefer_when_mix", args.prefer),
        ("multiple_matches", args.multiple),
    ):
        if value is not None:
            overrides[name] = value
    if args.fuzzy:
        overrides["fuzzy_compare"] = True
    if args.strict_keys:
        overrides["lenient_missing_keys"] = False
    if args.disable_dot_notation:
        overrides["disable_dot_notation"] = True
    options = CompareOptions.from_settings(**overrides)

    input_a = _read_records(args.input_a)
    input_b = _read_records(args.input_b)
    result = options.run(input_a, input_b)

    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    for name, classified in (
        ("only_in_a", result.only_in_a),
        ("same", result.same),
        ("different", result.different),
        ("only_in_b", result.only_in_b),
    ):
        _write_json(output_dir / f"{name}.json", [_classified_payload(item) for item in classified])

    summary = _build_summary(result, input_a_path=args.input_a, input_b_path=args.input_b)
    summary_path = output_dir / "summary.json"
    _write_json(summary_path, summary)

    print(f"Output: {output_dir}")
    print("---")
    for name, count in result.counts().items():
        print(f"{name}={count}")


def run_dedupe(args: argparse.Namespace) -> None:
    overrides: dict[str, Any] = {
        "compare": args.compare,
        "fields_to_exclude": args.fields if args.compare == "all_fields_except" else "",
        "fields_to_compare": args.fields if args.compare == "selected_fields" else "",
        "remove_other_fields": args.remove_other_fields,
    }
    if args.fuzzy:
        overrides["fuzzy_compare"] = True
    if args.disable_dot_notation:
        overrides["disable_dot_notation"] = True
    options = DedupeOptions.from_settings(**overrides)

    records = _read_records(args.input)
    kept = options.run(records)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    _write_json(args.output, kept)

    print(f"Output: {args.output}")
    print("---")
    print(f"records={len(records)}")
    print(f"kept={len(kept)}")
    print(f"removed={len(records) - len(kept)}")


def _build_summary(result: ComparisonResult, *, input_a_path: Path, input_b_path: Path) -> dict[str, object]:
    return {
        **result.counts(),
        "differing_field_counts": _differing_field_counts(result.different),
        "input_a_path": str(input_a_path),
        "input_b_path": str(input_b_path),
    }


def _differing_field_counts(different: list[ClassifiedRecord]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for item in different:
        for name in item.differing_fields:
            counts[name] = counts.get(name, 0) + 1
    return dict(sorted(counts.items(), key=lambda entry: (-entry[1], entry[0])))


def _classified_payload(item: ClassifiedRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {"record": item.as_dict(), "index_a": item.index_a, "index_b": item.index_b}
    if item.differing_fields:
        payload["differing_fields"] = list(item.differing_fields)
    return payload


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="record-match", description="Compare and deduplicate record collections")
    parser.add_argument("--log-level", type=str, default=None)
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file, rotated and compressed")
    subparsers = parser.add_subparsers(dest="command")

    compare_parser = subparsers.add_parser(
        "compare",
        help="Match two inputs on key fields and split them into only-in-A, same, different and only-in-B",
    )
    compare_parser.add_argument("--input-a", type=Path, required=True)
    compare_parser.add_argument("--input-b", type=Path, required=True)
    compare_parser.add_argument(
        "--key",
        action="append",
        default=[],
        help="Field to match on, 'name' or 'field_in_a=field_in_b'; repeat for composite keys",
    )
    compare_parser.add_argument("--resolve", choices=["prefer_a", "prefer_b", "mix", "include_both"], default=None)
    compare_parser.add_argument("--prefer", choices=["a", "b"], default=None)
    compare_parser.add_argument("--except-fields", type=str, default="")
    compare_parser.add_argument("--skip-fields", type=str, default="")
    compare_parser.add_argument("--multiple", choices=["first", "all"], default=None)
    compare_parser.add_argument("--fuzzy", action="store_true")
    compare_parser.add_argument("--strict-keys", action="store_true")
    compare_parser.add_argument("--disable-dot-notation", action="store_true")
    compare_parser.add_argument("--output-dir", type=Path, default=Path("data/compare_output"))

    dedupe_parser = subparsers.add_parser("dedupe", help="Remove items with matching field values")
    dedupe_parser.add_argument("--input", type=Path, required=True)
    dedupe_parser.add_argument(
        "--compare",
        choices=["all_fields", "all_fields_except", "selected_fields"],
        default="all_fields",
    )
    dedupe_parser.add_argument("--fields", type=str, default="")
    dedupe_parser.add_argument("--fuzzy", action="store_true")
    dedupe_parser.add_argument("--remove-other-fields", action="store_true")
    dedupe_parser.add_argument("--disable-dot-notation", action="store_true")
    dedupe_parser.add_argument("--output", type=Path, default=Path("data/dedupe_output.json"))

    return parser


def _write_json(path: Path, payload: object) -> None:
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)


def _read_records(path: Path) -> list[Record]:
    if path.suffix.lower() == ".csv":
        return _read_records_csv(path)

    with path.open("r", encoding="utf-8") as handle:
        if path.suffix.lower() == ".jsonl":
            records = [json.loads(line) for line in handle if line.strip()]
        else:
            records = json.load(handle)

    if not isinstance(records, list) or not all(isinstance(record, dict) for record in records):
        raise SystemExit(f"{path}: expected a list of JSON objects")
    return records


def _read_records_csv(path: Path) -> list[Record]:
    with path.open("r", newline="", encoding="utf-8") as handle:
        return [dict(row) for row in csv.DictReader(handle)]


if __name__ == "__main__":
    main()
