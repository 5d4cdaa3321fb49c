"""Reading function records from the input CSV."""

from __future__ import annotations

import csv
from pathlib import Path, PurePosixPath
from typing import Iterator

from .errors import RecordError
from .models import FunctionRecord

MIN_COLUMNS = 10

COL_ITEM_ID = 0
COL_CRATE = 1
COL_DEF_PATH = 3
COL_FILE = 9
COL_LINE = 10
COL_SAFETY = 12

REGISTRY_INDEX_PREFIX = "index.crates.io-"


def iter_rows(path: str | Path) -> Iterator[list[str]]:
    """Yield raw rows of a headerless CSV file."""
    with open(path, newline="", encoding="utf-8") as handle:
        yield from csv.reader(handle)


def split_registry_path(file_path: str) -> tuple[str, str | None]:
    """Strip a cargo registry prefix from ``file_path``.

    ``.../registry/src/index.crates.io-<hash>/<crate>-<version>/src/lib.rs``
    becomes ``("src/lib.rs", "<crate>-<version>")``. Other paths are returned
    unchanged with no crate directory.
    """
    parts = PurePosixPath(file_path).parts
    for idx, part in enumerate(parts):
        if part.startswith(REGISTRY_INDEX_PREFIX):
            crate_dir = parts[idx + 1] if idx + 1 < len(parts) else None
            rest = parts[idx + 2 :]
            if not rest:
                raise RecordError(f"new relfile is empty: {file_path}")
            return str(PurePosixPath(*rest)), crate_dir
    return file_path, None


def _column(row: list[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def parse_record(row: list[str]) -> FunctionRecord | None:
    """Build a record from one CSV row; short rows yield None."""
    if len(row) < MIN_COLUMNS:
        return None

    crate_name = _column(row, COL_CRATE)
    raw_line = _column(row, COL_LINE).strip()
    try:
        line = int(raw_line)
    except ValueError as exc:
        raise RecordError(f"Failed to parse start line {raw_line!r} for {crate_name}") from exc

    rel_file, crate_dir = split_registry_path(_column(row, COL_FILE))

    return FunctionRecord(
        item_id=_column(row, COL_ITEM_ID),
        crate_name=crate_name,
        def_path=_column(row, COL_DEF_PATH),
        file=rel_file,
        line=line,
        safety=_column(row, COL_SAFETY),
        crate_dir=crate_dir,
        raw=tuple(row),
    )
