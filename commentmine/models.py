"""Lightweight data models for located functions and extracted comments."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FunctionKind(str, Enum):
    FREE = "free"
    FOREIGN_DECL = "foreign_decl"
    METHOD = "method"
    MACRO_LEGACY = "macro_legacy"
    MACRO_MODERN = "macro_modern"


@dataclass(frozen=True)
class Span:
    """Inclusive, 1-indexed line range of a syntax node."""

    start_line: int
    end_line: int

    def contains(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


@dataclass(frozen=True)
class FunctionNode:
    kind: FunctionKind
    name: str
    span: Span
    # attribute_item / doc comment nodes attached to the item, in source order
    attributes: tuple[Any, ...] = ()
    node: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class FunctionRecord:
    item_id: str
    crate_name: str
    def_path: str
    file: str
    line: int
    safety: str
    crate_dir: str | None = None
    raw: tuple[str, ...] = field(default=(), compare=False, repr=False)


@dataclass(frozen=True)
class ExtractionResult:
    crate_name: str
    def_path: str
    file: str
    line: int
    has_doc: bool
    doc_paragraph: str
    has_inline_comment: bool
    inline_comment_paragraph: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "crate_name": self.crate_name,
            "def_path": self.def_path,
            "file": self.file,
            "line": self.line,
            "has_doc": self.has_doc,
            "doc_paragraph": self.doc_paragraph,
            "has_inline_comment": self.has_inline_comment,
            "inline_comment_paragraph": self.inline_comment_paragraph,
        }


RESOLVED = "resolved"
PARSE_UNAVAILABLE = "parse_unavailable"
LOCUS_UNRESOLVED = "locus_unresolved"


@dataclass(frozen=True)
class ExtractionOutcome:
    status: str  # resolved | parse_unavailable | locus_unresolved
    result: ExtractionResult | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == RESOLVED
