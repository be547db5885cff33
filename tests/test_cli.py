import json
from pathlib import Path

import pytest

from record_match.cli import main


def _write(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_compare_writes_four_outputs_and_summary(tmp_path: Path) -> None:
    input_a = _write(tmp_path / "a.json", [{"id": 1, "v": "x"}, {"id": 2, "v": "x"}, {"id": 3}])
    input_b = _write(tmp_path / "b.json", [{"id": 1, "v": "x"}, {"id": 2, "v": "y"}, {"id": 4}])
    output_dir = tmp_path / "out"

    main(
        [
            "compare",
            "--input-a",
            str(input_a),
            "--input-b",
            str(input_b),
            "--key",
            "id",
            "--resolve",
            "prefer_b",
            "--output-dir",
            str(output_dir),
        ]
    )

    summary = json.loads((output_dir / "summary.json").read_text(encoding="utf-8"))
    different = json.loads((output_dir / "different.json").read_text(encoding="utf-8"))
    only_in_b = json.loads((output_dir / "only_in_b.json").read_text(encoding="utf-8"))

    assert (summary["only_in_a"], summary["same"], summary["different"], summary["only_in_b"]) == (1, 1, 1, 1)
    assert summary["differing_field_counts"] == {"v": 1}
    assert different == [{"record": {"id": 2, "v": "y"}, "index_a": 1, "index_b": 1, "differing_fields": ["v"]}]
    assert only_in_b == [{"record": {"id": 4}, "index_a": None, "index_b": 2}]


def test_dedupe_reads_jsonl_and_writes_kept_records(tmp_path: Path) -> None:
    input_path = tmp_path / "items.jsonl"
    input_path.write_text('{"id": 1, "v": "a"}\n{"id": 1, "v": "a"}\n\n{"id": 2, "v": "b"}\n', encoding="utf-8")
    output_path = tmp_path / "kept.json"

    main(
        [
            "dedupe",
            "--input",
            str(input_path),
            "--compare",
            "selected_fields",
            "--fields",
            "id, v",
            "--output",
            str(output_path),
        ]
    )

    assert json.loads(output_path.read_text(encoding="utf-8")) == [{"id": 1, "v": "a"}, {"id": 2, "v": "b"}]


def test_dedupe_reads_csv(tmp_path: Path) -> None:
    input_path = tmp_path / "items.csv"
    input_path.write_text("id,name\n1,Ann\n1,Ann\n2,Bob\n", encoding="utf-8")
    output_path = tmp_path / "kept.json"

    main(["dedupe", "--input", str(input_path), "--output", str(output_path)])

    assert json.loads(output_path.read_text(encoding="utf-8")) == [
        {"id": "1", "name": "Ann"},
        {"id": "2", "name": "Bob"},
    ]


def test_engine_errors_exit_with_status_two(tmp_path: Path) -> None:
    input_path = _write(tmp_path / "items.json", [{"id": 1}, {"id": "1"}])

    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "dedupe",
                "--input",
                str(input_path),
                "--compare",
                "selected_fields",
                "--fields",
                "id",
                "--output",
                str(tmp_path / "kept.json"),
            ]
        )

    assert excinfo.value.code == 2


def test_compare_without_keys_exits_with_status_two(tmp_path: Path) -> None:
    input_a = _write(tmp_path / "a.json", [{"id": 1}])
    input_b = _write(tmp_path / "b.json", [{"id": 1}])

    with pytest.raises(SystemExit) as excinfo:
        main(["compare", "--input-a", str(input_a), "--input-b", str(input_b), "--output-dir", str(tmp_path)])

    assert excinfo.value.code == 2


def test_log_file_receives_engine_records(tmp_path: Path) -> None:
    input_path = _write(tmp_path / "items.json", [{"id": 1}, {"id": 1}])
    log_file = tmp_path / "logs" / "run.log"

    main(
        [
            "--log-level",
            "DEBUG",
            "--log-file",
            str(log_file),
            "dedupe",
            "--input",
            str(input_path),
            "--output",
            str(tmp_path / "kept.json"),
        ]
    )

    assert "Removed 1 duplicates from 2 records" in log_file.read_text(encoding="utf-8")
