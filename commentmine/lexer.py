"""Character-level comment scanner for Rust source text.

The scanner recognises ``//`` line comments and ``/* ... */`` block comments
(nested to any depth) and skips documentation comments (``///``, ``//!``,
``/**``, ``/*!``), which are read from the syntax tree instead. It works on
raw characters only: string literals are not tokenised, so a ``//`` inside a
string is read as a comment.
"""

from __future__ import annotations

from typing import Sequence

ORDINARY = "ordinary"
DOC = "doc"

# Markers are matched on the character after `//` or `/*` alone, so `////`
# and `/***` banners are skipped with the doc forms even though rustc reads
# them as plain comments; only `/**/` is carved out below.
DOC_LINE_MARKERS = ("/", "!")
DOC_BLOCK_MARKERS = ("*", "!")


def split_lines(source: str) -> list[str]:
    """Split source into lines the way the parser numbers rows.

    Only ``\\n`` separates lines; a trailing ``\\r`` is dropped and a final
    newline does not open an extra empty line.
    """
    lines = source.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _scan(lines: Sequence[str], contiguous: bool = False) -> list[str]:
    comments: list[str] = []
    stack: list[str] = []
    block: list[str] = []

    for line in lines:
        length = len(line)
        pos = 0
        while pos < length:
            char = line[pos]
            following = line[pos + 1] if pos + 1 < length else ""

            if not stack:
                if char == "/" and following == "/":
                    marker = line[pos + 2] if pos + 2 < length else ""
                    if marker not in DOC_LINE_MARKERS:
                        comments.append(line[pos:].strip())
                    # doc line comments come from the tree; either way the line is done
                    break
                if char == "/" and following == "*":
                    marker = line[pos + 2] if pos + 2 < length else ""
                    if line.startswith("/**/", pos):
                        comments.append("/**/")
                        pos += 4
                    elif marker in DOC_BLOCK_MARKERS:
                        stack.append(DOC)
                        pos += 3
                    else:
                        stack.append(ORDINARY)
                        block.append("/*")
                        pos += 2
                    continue
                if contiguous and comments and not char.isspace():
                    comments.clear()
                pos += 1
                continue

            # Nested scopes inherit the kind of the scope they open in.
            kind = stack[-1]
            if char == "/" and following == "*":
                stack.append(kind)
                if kind == ORDINARY:
                    block.append("/*")
                pos += 2
            elif char == "*" and following == "/":
                stack.pop()
                pos += 2
                if kind == ORDINARY:
                    block.append("*/")
                    if not stack:
                        comments.append("".join(block).strip())
                        block.clear()
            else:
                if kind == ORDINARY:
                    block.append(char)
                pos += 1

        if stack and stack[-1] == ORDINARY:
            block.append("\n")

    # Unterminated block comment: keep what was read.
    tail = "".join(block).strip()
    if tail:
        comments.append(tail)
    return comments


def extract_comments_from_lines(lines: Sequence[str]) -> list[str]:
    """Return every ordinary comment in ``lines``, trimmed, in order of appearance."""
    return _scan(lines)


def collect_preceding_comments(lines: Sequence[str], start_line: int) -> list[str]:
    """Return the run of ordinary comments sitting directly above ``start_line``.

    Every line before ``start_line`` (1-indexed) is scanned; code outside a
    comment discards whatever was collected so far, so only comments that are
    not followed by code before the definition survive. Whitespace and doc
    comments do not break the run.
    """
    end = min(max(start_line - 1, 0), len(lines))
    return _scan(lines[:end], contiguous=True)


def extract_inline_comments(source: str, start_line: int, end_line: int) -> list[str]:
    """Comments attached to the definition spanning ``[start_line, end_line]``.

    The preceding block comes first, then the comments lexed over exactly the
    definition's own lines. The in-span part is skipped when the range does
    not fit inside the document.
    """
    lines = split_lines(source)
    result = collect_preceding_comments(lines, start_line)

    if 1 <= start_line <= end_line <= len(lines):
        result.extend(extract_comments_from_lines(lines[start_line - 1 : end_line]))

    return result
