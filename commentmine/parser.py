"""Tree-sitter based parser for Rust sources."""

from __future__ import annotations

from dataclasses import dataclass

from tree_sitter import Language, Parser

from .errors import ParseUnavailable


@dataclass
class ParsedSource:
    tree: object
    source_bytes: bytes

    @property
    def root(self):
        return self.tree.root_node

    @property
    def has_error(self) -> bool:
        return bool(self.tree.root_node.has_error)

    @property
    def error_line(self) -> int | None:
        """1-based line of the first syntax error, or ``None`` for a clean tree."""
        if not self.has_error:
            return None
        return _first_error_line(self.root)


def load_rust_language() -> Language:
    """Return a Tree-sitter Language object for Rust."""
    try:
        import tree_sitter_rust as tsrust
    except Exception as exc:  # pragma: no cover - import guard
        raise RuntimeError("tree_sitter_rust is not installed") from exc

    lang = getattr(tsrust, "language", None) or getattr(tsrust, "LANGUAGE", None)
    if lang is None:
        raise RuntimeError("Unsupported tree_sitter_rust API")
    lang = lang() if callable(lang) else lang

    # Grammar wheels from 0.22 on return a PyCapsule.
    if isinstance(lang, Language):
        return lang
    return Language(lang)


class RustParser:
    """Thin wrapper over a tree-sitter parser configured for Rust.

    With ``strict=True`` a tree that contains syntax errors is rejected the
    same way a parser failure is; otherwise error-recovered trees are handed
    back and the locator works with whatever structure survived.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict
        self._parser = Parser()
        language = load_rust_language()
        # tree-sitter API supports either set_language or direct attribute.
        if hasattr(self._parser, "set_language"):
            self._parser.set_language(language)
        else:
            self._parser.language = language

    def parse_bytes(self, source_bytes: bytes) -> ParsedSource:
        try:
            tree = self._parser.parse(source_bytes)
        except (ValueError, TypeError, RuntimeError) as exc:
            raise ParseUnavailable(f"parser failure: {exc}") from exc
        if tree is None:
            raise ParseUnavailable("parser returned no tree")

        parsed = ParsedSource(tree=tree, source_bytes=source_bytes)
        if self.strict and parsed.has_error:
            raise ParseUnavailable(f"syntax error near line {parsed.error_line}")
        return parsed

    def parse_text(self, source_text: str) -> ParsedSource:
        try:
            source_bytes = source_text.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise ParseUnavailable(f"source is not encodable as utf-8: {exc}") from exc
        return self.parse_bytes(source_bytes)

    def parse_file(self, path: str) -> ParsedSource:
        with open(path, "rb") as handle:
            source_bytes = handle.read()
        return self.parse_bytes(source_bytes)


def _first_error_line(node) -> int:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current.start_point[0] + 1
        # Reverse so that earlier children are popped first.
        stack.extend(child for child in reversed(current.children) if child.has_error or child.is_missing)
    return node.start_point[0] + 1
