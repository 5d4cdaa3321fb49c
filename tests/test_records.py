from __future__ import annotations

import csv
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from commentmine.errors import RecordError
from commentmine.records import iter_rows, parse_record, split_registry_path

REGISTRY_FILE = (
    "/opt/rustwide/cargo-home/registry/src/index.crates.io-6f17d22bba15001f/"
    "bitflags-2.9.0/src/lib.rs"
)


def _row(file: str = "src/lib.rs", line: str = "12", safety: str = "Safe") -> list[str]:
    row = [""] * 13
    row[0] = "42"
    row[1] = "bitflags"
    row[3] = "bitflags::parser::to_writer"
    row[9] = file
    row[10] = line
    row[12] = safety
    return row


def test_registry_prefix_is_stripped():
    rel_file, crate_dir = split_registry_path(REGISTRY_FILE)

    assert rel_file == "src/lib.rs"
    assert crate_dir == "bitflags-2.9.0"


def test_plain_paths_are_unchanged():
    assert split_registry_path("src/parser.rs") == ("src/parser.rs", None)


def test_registry_path_without_file_is_rejected():
    with pytest.raises(RecordError):
        split_registry_path("/registry/src/index.crates.io-abc/bitflags-2.9.0")


def test_parse_record_reads_columns():
    record = parse_record(_row(file=REGISTRY_FILE))

    assert record is not None
    assert record.item_id == "42"
    assert record.crate_name == "bitflags"
    assert record.def_path == "bitflags::parser::to_writer"
    assert record.file == "src/lib.rs"
    assert record.crate_dir == "bitflags-2.9.0"
    assert record.line == 12
    assert record.safety == "Safe"
    assert record.raw[9] == REGISTRY_FILE


def test_short_rows_are_ignored():
    assert parse_record(["1", "crate", "x"]) is None


def test_missing_safety_column_is_blank():
    record = parse_record(_row()[:11])

    assert record is not None
    assert record.safety == ""


def test_bad_line_number_is_a_record_error():
    with pytest.raises(RecordError):
        parse_record(_row(line="twelve"))


def test_iter_rows_reads_headerless_csv():
    with TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "functions.csv"
        with path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            writer.writerow(_row())
            writer.writerow(_row(line="30", safety="Unsafe"))

        rows = list(iter_rows(path))

    assert len(rows) == 2
    assert rows[1][10] == "30"
    assert rows[1][12] == "Unsafe"
