"""Batch driver: read function records, unpack crates, write results."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path

from .common import setup_logging
from .config import ExtractorConfig, resolve_config
from .crates import CrateCache
from .errors import CrateUnavailable, RecordError
from .extract import extract_function_comments
from .models import ExtractionResult, FunctionRecord
from .parser import RustParser
from .records import iter_rows, parse_record
from .storage import FailureLog, append_results

logger = logging.getLogger(__name__)

SAFE = "Safe"


@dataclass
class RunContext:
    """Mutable state of one run, owned by the driver."""

    result_root: Path
    cache: CrateCache
    failures: FailureLog
    parser: RustParser
    config: ExtractorConfig = field(default_factory=ExtractorConfig)
    results: list[ExtractionResult] = field(default_factory=list)
    # crate name as written in the records, and as resolved in the cache
    crate_key: str | None = None
    crate_name: str | None = None
    crate_root: Path | None = None
    rows_seen: int = 0
    attempted: int = 0
    extracted: int = 0

    @property
    def failed(self) -> int:
        return self.failures.count


def create_context(
    cache_root: str | Path,
    result_root: str | Path,
    config: ExtractorConfig | None = None,
) -> RunContext:
    config = config or ExtractorConfig()
    result_path = Path(result_root)
    result_path.mkdir(parents=True, exist_ok=True)
    return RunContext(
        result_root=result_path,
        cache=CrateCache(cache_root, config),
        failures=FailureLog(result_path),
        parser=RustParser(strict=config.strict_parse),
        config=config,
    )


def flush(ctx: RunContext) -> Path | None:
    """Write the current crate's batch and drop its unpacked sources."""
    written = None
    if ctx.results and ctx.crate_name:
        written = append_results(ctx.result_root, ctx.crate_name, ctx.results)
        logger.info("Results written of %s to %s", ctx.crate_name, written)
        ctx.results.clear()
    if ctx.config.cleanup and ctx.crate_root is not None:
        ctx.cache.cleanup(ctx.crate_root)
    ctx.crate_root = None
    return written


def switch_crate(ctx: RunContext, record: FunctionRecord) -> bool:
    flush(ctx)
    ctx.crate_key = None
    ctx.crate_name = None
    try:
        name, root = ctx.cache.unpack(record.crate_name, record.crate_dir)
    except CrateUnavailable as exc:
        ctx.failures.record(record.raw, f"cannot find crate_name target crate path: {exc} {record.file}")
        logger.warning("Skipping %s: %s", record.def_path, exc)
        return False
    ctx.crate_key = record.crate_name
    ctx.crate_name = name
    ctx.crate_root = root
    return True


def process_record(ctx: RunContext, record: FunctionRecord) -> ExtractionResult | None:
    """Extract one record, logging and persisting any reason to skip it."""
    if ctx.config.safe_only and record.safety != SAFE:
        return None
    ctx.attempted += 1

    if record.crate_name != ctx.crate_key:
        if not switch_crate(ctx, record):
            return None

    file_path = ctx.crate_root / record.file
    if not file_path.exists():
        ctx.failures.record(
            record.raw, f"file path does not exist: {ctx.crate_name} {record.file} {file_path}"
        )
        logger.warning("File path does not exist: %s", file_path)
        return None

    # An unreadable file is a resource failure and stops the run.
    source_bytes = file_path.read_bytes()
    try:
        source = source_bytes.decode("utf-8")
    except UnicodeDecodeError as exc:
        ctx.failures.record(record.raw, f"Failed to decode file {file_path}: {exc}")
        logger.warning("Failed to decode %s: %s", file_path, exc)
        return None

    outcome = extract_function_comments(source, record.line, ctx.parser, record)
    if not outcome.ok:
        ctx.failures.record(record.raw, f"{outcome.reason} {file_path}")
        return None

    result = outcome.result
    if ctx.crate_name and result.crate_name != ctx.crate_name:
        result = replace(result, crate_name=ctx.crate_name)
    ctx.results.append(result)
    ctx.extracted += 1
    return result


def run(
    csv_path: str | Path,
    cache_root: str | Path,
    result_root: str | Path,
    config: ExtractorConfig | None = None,
) -> RunContext:
    ctx = create_context(cache_root, result_root, config)

    for row in iter_rows(csv_path):
        ctx.rows_seen += 1
        try:
            record = parse_record(row)
        except RecordError as exc:
            ctx.failures.record(row, str(exc))
            logger.warning("Skipping row %d: %s", ctx.rows_seen, exc)
            continue
        if record is None:
            continue
        logger.debug("Processing %s %s %s:%s", record.item_id, record.crate_name, record.file, record.line)
        process_record(ctx, record)

    flush(ctx)
    logger.info(
        "Extracted %d of %d functions (%d failed)", ctx.extracted, ctx.attempted, ctx.failed
    )
    return ctx


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Extract doc comments and ordinary comments of Rust functions"
    )
    parser.add_argument("functions_csv", help="Headerless CSV of function records")
    parser.add_argument("crates_cache_root", help="Directory holding <crate>/<crate>-<version>.crate")
    parser.add_argument("result_dir", help="Directory for result-<crate>.json and failure logs")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument("--log-file", help="Optional log file")
    parser.add_argument(
        "--all-safety",
        action="store_true",
        help="Process every record, not only those marked Safe",
    )
    parser.add_argument(
        "--strict-parse",
        action="store_true",
        help="Skip files whose syntax tree contains errors",
    )
    parser.add_argument(
        "--keep-unpacked",
        action="store_true",
        help="Keep unpacked crate sources after their results are written",
    )
    parser.add_argument(
        "--download-missing",
        action="store_true",
        help="Fetch archives missing from the cache from the crates registry",
    )
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    config = resolve_config().with_overrides(
        safe_only=False if args.all_safety else None,
        strict_parse=True if args.strict_parse else None,
        cleanup=False if args.keep_unpacked else None,
        download_missing=True if args.download_missing else None,
    )
    ctx = run(args.functions_csv, args.crates_cache_root, args.result_dir, config)
    print(ctx.extracted, ctx.failed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
