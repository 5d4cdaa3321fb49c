"""Doc comment and ordinary comment mining for Rust functions."""

from .docs import extract_doc_comments
from .extract import extract_function_comments
from .lexer import collect_preceding_comments, extract_comments_from_lines, extract_inline_comments
from .locate import find_function
from .parser import RustParser

__all__ = [
    "RustParser",
    "collect_preceding_comments",
    "extract_comments_from_lines",
    "extract_doc_comments",
    "extract_function_comments",
    "extract_inline_comments",
    "find_function",
]
