"""Documentation text attached to located Rust items."""

from __future__ import annotations

import re
from typing import Iterable

from .models import FunctionNode

OUTER = "outer"
INNER = "inner"

COMMENT_TYPES = {"line_comment", "block_comment"}

_DOC_ATTRIBUTE_RE = re.compile(r"^#\s*(!)?\s*\[\s*doc\s*=\s*(?P<value>.*?)\s*\]\s*$", re.DOTALL)
_RAW_STRING_RE = re.compile(r'^r(?P<hashes>#*)"(?P<body>.*)"(?P=hashes)$', re.DOTALL)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    "0": "\0",
    "'": "'",
    '"': '"',
}


def node_text(node, source_bytes: bytes) -> str:
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def comment_doc_style(text: str) -> str | None:
    """Classify a comment token the way rustc does: outer doc, inner doc, or plain."""
    if text.startswith("///"):
        return None if text.startswith("////") else OUTER
    if text.startswith("//!"):
        return INNER
    if text.startswith("/**"):
        if text.startswith("/***") or text.startswith("/**/"):
            return None
        return OUTER
    if text.startswith("/*!"):
        return INNER
    return None


def is_comment(node) -> bool:
    return node.type in COMMENT_TYPES


def unescape_rust_string(literal: str) -> str | None:
    """Value of a Rust string or raw string literal, or None if it is neither."""
    raw = _RAW_STRING_RE.match(literal)
    if raw:
        return raw.group("body")
    if len(literal) < 2 or not (literal.startswith('"') and literal.endswith('"')):
        return None

    body = literal[1:-1]
    out: list[str] = []
    idx = 0
    try:
        while idx < len(body):
            char = body[idx]
            if char != "\\":
                out.append(char)
                idx += 1
                continue
            escape = body[idx + 1 : idx + 2]
            if escape in ("\n", "\r"):
                # Line continuation swallows the newline and leading whitespace.
                idx += 2
                while idx < len(body) and body[idx] in " \t\r\n":
                    idx += 1
            elif escape in _SIMPLE_ESCAPES:
                out.append(_SIMPLE_ESCAPES[escape])
                idx += 2
            elif escape == "x":
                out.append(chr(int(body[idx + 2 : idx + 4], 16)))
                idx += 4
            elif escape == "u":
                close = body.index("}", idx)
                out.append(chr(int(body[idx + 3 : close].replace("_", ""), 16)))
                idx = close + 1
            else:
                return None
    except ValueError:
        return None
    return "".join(out)


def doc_value(node, source_bytes: bytes) -> str | None:
    """Documentation string carried by one attribute or doc comment node."""
    text = node_text(node, source_bytes)

    if is_comment(node):
        style = comment_doc_style(text)
        if style is None:
            return None
        if node.type == "line_comment":
            return text[3:].rstrip("\r\n")
        return text[3:-2] if text.endswith("*/") else text[3:]

    if node.type in ("attribute_item", "inner_attribute_item"):
        match = _DOC_ATTRIBUTE_RE.match(text)
        if match is None:
            return None
        return unescape_rust_string(match.group("value"))

    return None


def inner_doc_nodes(node, source_bytes: bytes) -> list:
    """Inner doc comments and ``#![doc]`` attributes opening an item's body."""
    body = node.child_by_field_name("body")
    if body is None or body.type != "block":
        return []

    found = []
    for child in body.named_children:
        if child.type == "inner_attribute_item":
            found.append(child)
        elif is_comment(child):
            if comment_doc_style(node_text(child, source_bytes)) == INNER:
                found.append(child)
        else:
            break
    return found


def _collect(nodes: Iterable, source_bytes: bytes) -> list[str]:
    docs: list[str] = []
    for attr in nodes:
        value = doc_value(attr, source_bytes)
        if value is not None:
            docs.append(value.strip())
    return docs


def extract_doc_comments(func: FunctionNode, source_bytes: bytes) -> list[str]:
    """Return the documentation strings of ``func`` in source order.

    Outer docs (``///``, ``/** */``, ``#[doc = "..."]``) come first, then the
    inner docs at the top of the body. Doc attributes whose value is not a
    string literal are skipped.
    """
    docs = _collect(func.attributes, source_bytes)
    if func.node is not None:
        docs.extend(_collect(inner_doc_nodes(func.node, source_bytes), source_bytes))
    return docs
