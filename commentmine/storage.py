"""JSON result files and failure logs."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable, Sequence

from .models import ExtractionResult

FAILED_RECORDS_FILE = "records_failed_to_extract.csv"
FAILED_REASONS_FILE = "records_failed_reason.txt"


def result_path(result_root: str | Path, crate_name: str) -> Path:
    return Path(result_root) / f"result-{crate_name}.json"


def append_results(
    result_root: str | Path, crate_name: str, results: Iterable[ExtractionResult]
) -> Path:
    """Append one pretty-printed JSON array for a crate's batch to its result file."""
    path = result_path(result_root, crate_name)
    data = [result.to_dict() for result in results]
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(data, indent=2, ensure_ascii=False))
        handle.write("\n")
    return path


def load_results(path: str | Path) -> list[dict]:
    """Read back every batch appended to a result file, concatenated."""
    text = Path(path).read_text(encoding="utf-8")
    decoder = json.JSONDecoder()
    batches: list[dict] = []
    idx = 0
    while idx < len(text):
        if text[idx].isspace():
            idx += 1
            continue
        batch, idx = decoder.raw_decode(text, idx)
        batches.extend(batch)
    return batches


class FailureLog:
    """Appends skipped rows and their reasons so they can be reprocessed."""

    def __init__(self, result_root: str | Path) -> None:
        self.result_root = Path(result_root)
        self.records_path = self.result_root / FAILED_RECORDS_FILE
        self.reasons_path = self.result_root / FAILED_REASONS_FILE
        self.count = 0

    def record(self, row: Sequence[str], reason: str) -> None:
        with self.reasons_path.open("a", encoding="utf-8") as handle:
            handle.write(f"{reason} failed_extract_record_count {self.count}\n")
        with self.records_path.open("a", newline="", encoding="utf-8") as handle:
            csv.writer(handle).writerow(list(row))
        self.count += 1
