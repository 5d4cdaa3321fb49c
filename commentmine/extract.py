"""Per-record extraction: parse, locate, and collect docs and comments."""

from __future__ import annotations

import logging

from .docs import extract_doc_comments
from .errors import ParseUnavailable
from .lexer import extract_inline_comments
from .locate import find_function
from .models import (
    LOCUS_UNRESOLVED,
    PARSE_UNAVAILABLE,
    RESOLVED,
    ExtractionOutcome,
    ExtractionResult,
    FunctionNode,
    FunctionRecord,
)
from .parser import ParsedSource, RustParser

logger = logging.getLogger(__name__)


def extract_function_comments(
    source: str,
    target_line: int,
    parser: RustParser | None = None,
    record: FunctionRecord | None = None,
) -> ExtractionOutcome:
    """Run the whole extraction for one function record.

    Never raises for bad input: unparseable text and lines that fall outside
    every function-like item come back as non-resolved outcomes with a reason
    naming the document and line. A tree with syntax errors is still searched;
    only when nothing matches is the record reported as unparseable.
    """
    parser = parser or RustParser()
    where = _describe(record, target_line)

    try:
        parsed = parser.parse_text(source)
    except ParseUnavailable as exc:
        return _parse_unavailable(where, str(exc))

    if parsed.has_error:
        logger.debug("Syntax errors in %s; searching the recovered tree", where)

    func = find_function(parsed, target_line)
    if func is None:
        if parsed.has_error:
            return _parse_unavailable(where, f"syntax error near line {parsed.error_line}")
        logger.warning("No function found for %s", where)
        return ExtractionOutcome(
            status=LOCUS_UNRESOLVED,
            reason=f"Failed to find function by start line {where}",
        )

    result = build_result(parsed, source, func, record)
    return ExtractionOutcome(status=RESOLVED, result=result)


def _parse_unavailable(where: str, detail: str) -> ExtractionOutcome:
    logger.warning("Failed to parse %s: %s", where, detail)
    return ExtractionOutcome(status=PARSE_UNAVAILABLE, reason=f"Failed to parse {where}: {detail}")


def build_result(
    parsed: ParsedSource,
    source: str,
    func: FunctionNode,
    record: FunctionRecord | None = None,
) -> ExtractionResult:
    docs = extract_doc_comments(func, parsed.source_bytes)
    comments = extract_inline_comments(source, func.span.start_line, func.span.end_line)
    logger.debug(
        "Found %s %s at lines %s-%s: %d doc strings, %d comments",
        func.kind.value,
        func.name or "<anonymous>",
        func.span.start_line,
        func.span.end_line,
        len(docs),
        len(comments),
    )

    return ExtractionResult(
        crate_name=record.crate_name if record else "",
        def_path=record.def_path if record else "",
        file=record.file if record else "",
        line=func.span.start_line,
        has_doc=bool(docs),
        doc_paragraph=" ".join(docs),
        has_inline_comment=bool(comments),
        inline_comment_paragraph=" ".join(comments),
    )


def _describe(record: FunctionRecord | None, target_line: int) -> str:
    if record is None:
        return f"line {target_line}"
    return f"{record.crate_name} {record.file}:{target_line}"
