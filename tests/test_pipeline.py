from __future__ import annotations

import csv
from pathlib import Path

from commentmine.config import ExtractorConfig
from commentmine.pipeline import main, run
from commentmine.storage import FAILED_REASONS_FILE, FAILED_RECORDS_FILE, load_results

LIB_RS = """/// Adds numbers.
fn add(a: i32, b: i32) -> i32 {
    // sum them
    a + b
}

pub struct Point {
    x: i32,
}

impl Point {
    // Builds a point.
    pub fn new(x: i32) -> Self {
        Point { x } /* shorthand */
    }
}
"""

OTHER_RS = """// Entry.
pub fn run() {}
"""

REGISTRY_PREFIX = "/opt/rustwide/cargo-home/registry/src/index.crates.io-6f17d22bba15001f"


def _row(item_id: str, crate: str, def_path: str, file: str, line: int, safety: str = "Safe") -> list[str]:
    row = [""] * 13
    row[0] = item_id
    row[1] = crate
    row[3] = def_path
    row[9] = file
    row[10] = str(line)
    row[12] = safety
    return row


def _write_csv(path: Path, rows: list[list[str]]) -> None:
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        for row in rows:
            writer.writerow(row)


def _setup(tmp_path: Path, make_crate) -> tuple[Path, Path, Path]:
    cache_root = tmp_path / "cache"
    result_root = tmp_path / "results"
    make_crate(cache_root, "demo", "0.1.0", {"src/lib.rs": LIB_RS})
    make_crate(cache_root, "other-crate", "2.0.0", {"src/lib.rs": OTHER_RS})

    csv_path = tmp_path / "functions.csv"
    _write_csv(
        csv_path,
        [
            _row("1", "demo", "demo::add", f"{REGISTRY_PREFIX}/demo-0.1.0/src/lib.rs", 2),
            _row("2", "demo", "demo::Point::new", "src/lib.rs", 13),
            _row("3", "demo", "demo::Point", "src/lib.rs", 8),
            _row("4", "demo", "demo::unsafe_fn", "src/lib.rs", 2, safety="Unsafe"),
            _row("5", "demo", "demo::missing", "src/missing.rs", 1),
            ["too", "short"],
            _row("6", "other_crate", "other_crate::run", "src/lib.rs", 2),
            _row("7", "ghost", "ghost::f", "src/lib.rs", 1),
        ],
    )
    return csv_path, cache_root, result_root


def test_run_writes_results_per_crate(tmp_path: Path, make_crate) -> None:
    csv_path, cache_root, result_root = _setup(tmp_path, make_crate)

    ctx = run(csv_path, cache_root, result_root, ExtractorConfig())

    demo = load_results(result_root / "result-demo.json")
    assert [item["def_path"] for item in demo] == ["demo::add", "demo::Point::new"]
    assert demo[0] == {
        "crate_name": "demo",
        "def_path": "demo::add",
        "file": "src/lib.rs",
        "line": 1,
        "has_doc": True,
        "doc_paragraph": "Adds numbers.",
        "has_inline_comment": True,
        "inline_comment_paragraph": "// sum them",
    }
    assert demo[1]["has_doc"] is False
    assert demo[1]["line"] == 13
    assert demo[1]["inline_comment_paragraph"] == "// Builds a point. /* shorthand */"

    other = load_results(result_root / "result-other-crate.json")
    assert other[0]["crate_name"] == "other-crate"
    assert other[0]["inline_comment_paragraph"] == "// Entry."

    assert ctx.extracted == 3
    assert ctx.attempted == 6
    assert ctx.failed == 3


def test_run_logs_failures_for_reprocessing(tmp_path: Path, make_crate) -> None:
    csv_path, cache_root, result_root = _setup(tmp_path, make_crate)

    run(csv_path, cache_root, result_root, ExtractorConfig())

    with (result_root / FAILED_RECORDS_FILE).open(newline="", encoding="utf-8") as handle:
        failed_ids = [row[0] for row in csv.reader(handle)]
    reasons = (result_root / FAILED_REASONS_FILE).read_text(encoding="utf-8")

    assert failed_ids == ["3", "5", "7"]
    assert "Failed to find function by start line" in reasons
    assert "file path does not exist" in reasons
    assert "cannot find crate_name target crate path" in reasons


def test_run_cleans_up_unpacked_sources(tmp_path: Path, make_crate) -> None:
    csv_path, cache_root, result_root = _setup(tmp_path, make_crate)

    run(csv_path, cache_root, result_root, ExtractorConfig())

    assert not (cache_root / "demo" / "demo-0.1.0").exists()
    assert not (cache_root / "other-crate" / "other-crate-2.0.0").exists()
    assert (cache_root / "demo" / "demo-0.1.0.crate").exists()


def test_run_can_keep_sources_and_include_unsafe(tmp_path: Path, make_crate) -> None:
    csv_path, cache_root, result_root = _setup(tmp_path, make_crate)

    ctx = run(csv_path, cache_root, result_root, ExtractorConfig(cleanup=False, safe_only=False))

    demo = load_results(result_root / "result-demo.json")
    assert [item["def_path"] for item in demo] == ["demo::add", "demo::Point::new", "demo::unsafe_fn"]
    assert (cache_root / "demo" / "demo-0.1.0" / "src" / "lib.rs").exists()
    assert ctx.attempted == 7


def test_main_runs_from_command_line(tmp_path: Path, make_crate, capsys) -> None:
    csv_path, cache_root, result_root = _setup(tmp_path, make_crate)

    exit_code = main([str(csv_path), str(cache_root), str(result_root), "--log-level", "WARNING"])

    assert exit_code == 0
    assert capsys.readouterr().out.strip().endswith("3 3")
    assert (result_root / "result-demo.json").exists()
