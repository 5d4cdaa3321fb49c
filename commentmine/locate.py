"""Find the function-like Rust item whose span contains a given line."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from .docs import OUTER, comment_doc_style, is_comment, node_text
from .models import FunctionKind, FunctionNode, Span
from .parser import ParsedSource

logger = logging.getLogger(__name__)

# Declarative macros 2.0 have no grammar rule, so they only survive as error
# nodes; the declaration is recognised from the raw text.
MODERN_MACRO_RE = re.compile(
    rb"(?:^|(?<=[\s;{}\]]))(?:pub(?:\s*\([^)]*\))?\s+)?macro\s+(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
)

_CLOSERS = {ord("("): ord(")"), ord("["): ord("]"), ord("{"): ord("}")}


def find_function(parsed: ParsedSource, target_line: int) -> FunctionNode | None:
    """Return the first function-like item, in pre-order, spanning ``target_line``."""
    if target_line < 1:
        return None
    return _search_items(parsed.root.named_children, target_line, parsed.source_bytes)


def node_span(node, attributes: Iterable = ()) -> Span:
    """Line span of ``node`` widened to the attributes attached above it."""
    start_row = node.start_point[0]
    for attr in attributes:
        start_row = min(start_row, attr.start_point[0])
    end_row, end_column = node.end_point
    # A token that swallows its newline ends at column 0 of the next row.
    if end_column == 0 and end_row > node.start_point[0]:
        end_row -= 1
    return Span(start_line=start_row + 1, end_line=end_row + 1)


def attached_attributes(node, source_bytes: bytes) -> tuple:
    """Outer attributes and outer doc comments directly above ``node``.

    Plain comments between them are stepped over; anything else, including an
    inner doc comment, ends the run.
    """
    attached = []
    sibling = node.prev_named_sibling
    while sibling is not None:
        if sibling.type == "attribute_item":
            attached.append(sibling)
        elif is_comment(sibling):
            style = comment_doc_style(node_text(sibling, source_bytes))
            if style == OUTER:
                attached.append(sibling)
            elif style is not None:
                break
        else:
            break
        sibling = sibling.prev_named_sibling
    attached.reverse()
    return tuple(attached)


def _search_items(items: Iterable, target_line: int, source_bytes: bytes) -> FunctionNode | None:
    # One sibling iterator per open scope; entering a module suspends its
    # parent, so items are still visited in pre-order.
    stack = [iter(items)]
    while stack:
        item = next(stack[-1], None)
        if item is None:
            stack.pop()
            continue
        found = _match_item(item, target_line, source_bytes)
        if found is not None:
            return found
        nested = _nested_items(item, target_line, source_bytes)
        if nested:
            stack.append(iter(nested))
    return None


def _nested_items(item, target_line: int, source_bytes: bytes) -> list:
    """Items to search inside ``item``: an inline module spanning the line, or an error node."""
    if item.type == "mod_item":
        body = item.child_by_field_name("body")
        if body is None:
            return []
        span = node_span(item, attached_attributes(item, source_bytes))
        if not span.contains(target_line):
            return []
        return list(body.named_children)
    if item.type == "ERROR":
        return list(item.named_children)
    return []


def _match_item(item, target_line: int, source_bytes: bytes) -> FunctionNode | None:
    node_type = item.type

    if node_type == "function_item":
        return _candidate(item, FunctionKind.FREE, target_line, source_bytes)

    if node_type == "foreign_mod_item":
        for member in _body_items(item):
            if member.type != "function_signature_item":
                continue
            found = _candidate(member, FunctionKind.FOREIGN_DECL, target_line, source_bytes)
            if found is not None:
                return found
        return None

    if node_type == "impl_item":
        # Associated consts, types and macro invocations are not candidates.
        for member in _body_items(item):
            if member.type != "function_item":
                continue
            found = _candidate(member, FunctionKind.METHOD, target_line, source_bytes)
            if found is not None:
                return found
        return None

    if node_type == "macro_definition":
        return _candidate(item, FunctionKind.MACRO_LEGACY, target_line, source_bytes)

    if node_type == "macro_invocation":
        return _candidate(item, FunctionKind.MACRO_LEGACY, target_line, source_bytes, name="")

    if node_type == "expression_statement":
        # `foo! { ... }` in item position, possibly followed by `;`.
        inner = item.named_children[0] if item.named_child_count else None
        if inner is not None and inner.type == "macro_invocation":
            return _candidate(item, FunctionKind.MACRO_LEGACY, target_line, source_bytes, name="")

    if node_type != "mod_item" and (node_type == "ERROR" or item.has_error):
        return _match_modern_macro(item, target_line, source_bytes)

    return None


def _body_items(node) -> list:
    body = node.child_by_field_name("body")
    if body is None:
        return []
    return list(body.named_children)


def _candidate(
    node,
    kind: FunctionKind,
    target_line: int,
    source_bytes: bytes,
    name: str | None = None,
) -> FunctionNode | None:
    attributes = attached_attributes(node, source_bytes)
    span = node_span(node, attributes)
    if not span.contains(target_line):
        return None
    if name is None:
        name = _item_name(node, source_bytes)
    return FunctionNode(kind=kind, name=name, span=span, attributes=attributes, node=node)


def _item_name(node, source_bytes: bytes) -> str:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return ""
    return node_text(name_node, source_bytes)


def _match_modern_macro(error_node, target_line: int, source_bytes: bytes) -> FunctionNode | None:
    segment = source_bytes[error_node.start_byte : error_node.end_byte]
    for match in MODERN_MACRO_RE.finditer(segment):
        start_byte = error_node.start_byte + match.start()
        end_byte = _declaration_end(source_bytes, error_node.start_byte + match.end())

        attributes = _attributes_before(error_node, start_byte, source_bytes)
        start_line = _line_at(source_bytes, start_byte)
        for attr in attributes:
            start_line = min(start_line, attr.start_point[0] + 1)
        span = Span(start_line=start_line, end_line=_line_at(source_bytes, max(end_byte - 1, start_byte)))
        if not span.contains(target_line):
            continue

        name = match.group("name").decode("utf-8", errors="replace")
        logger.debug("Matched macro 2.0 declaration %s at lines %s-%s", name, span.start_line, span.end_line)
        return FunctionNode(
            kind=FunctionKind.MACRO_MODERN,
            name=name,
            span=span,
            attributes=attributes,
            node=None,
        )
    return None


def _attributes_before(error_node, start_byte: int, source_bytes: bytes) -> tuple:
    leading = source_bytes[error_node.start_byte : start_byte]
    if not leading.strip():
        return attached_attributes(error_node, source_bytes)

    # Error recovery may fold the attributes into the error node itself.
    run = []
    for child in error_node.named_children:
        if child.end_byte > start_byte:
            break
        if child.type == "attribute_item":
            run.append(child)
        elif is_comment(child):
            if comment_doc_style(node_text(child, source_bytes)) == OUTER:
                run.append(child)
        else:
            run = []
    return tuple(run)


def _declaration_end(source_bytes: bytes, offset: int) -> int:
    """Byte offset just past the body of a ``macro name(..) {..}`` declaration."""
    length = len(source_bytes)
    idx = offset
    while idx < length:
        opener = source_bytes[idx]
        if opener == ord("{"):
            return _matching_close(source_bytes, idx)
        if opener == ord("("):
            idx = _matching_close(source_bytes, idx)
            continue
        if opener == ord(";"):
            return idx + 1
        idx += 1
    return length


def _matching_close(source_bytes: bytes, open_idx: int) -> int:
    stack = [_CLOSERS[source_bytes[open_idx]]]
    idx = open_idx + 1
    length = len(source_bytes)
    while idx < length and stack:
        byte = source_bytes[idx]
        if byte in _CLOSERS:
            stack.append(_CLOSERS[byte])
        elif byte == stack[-1]:
            stack.pop()
        idx += 1
    return idx


def _line_at(source_bytes: bytes, offset: int) -> int:
    return source_bytes.count(b"\n", 0, offset) + 1
