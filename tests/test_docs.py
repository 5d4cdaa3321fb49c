from __future__ import annotations

from commentmine.docs import INNER, OUTER, comment_doc_style, extract_doc_comments, unescape_rust_string
from commentmine.locate import find_function
from commentmine.parser import RustParser


DOC_SAMPLE = r"""/// First line.
///Second line.
/** Block docs. */
#[doc = "Attribute \"quoted\" docs."]
#[doc = r#"Raw "docs"."#]
#[doc(hidden)]
#[doc = include_str!("README.md")]
// not documentation
fn documented() {
    //! Inner docs.
    #![doc = "Inner attribute."]
    let value = 1;
    //! too late
}

fn bare() {}
"""


def _docs_for(source: str, line: int) -> list[str]:
    parsed = RustParser().parse_text(source)
    func = find_function(parsed, line)
    assert func is not None
    return extract_doc_comments(func, parsed.source_bytes)


def test_doc_strings_are_collected_in_source_order():
    docs = _docs_for(DOC_SAMPLE, 12)

    assert docs == [
        "First line.",
        "Second line.",
        "Block docs.",
        'Attribute "quoted" docs.',
        'Raw "docs".',
        "Inner docs.",
        "Inner attribute.",
    ]


def test_function_without_docs_has_empty_list():
    assert _docs_for(DOC_SAMPLE, 16) == []


def test_method_docs_are_read_inside_impl():
    source = """struct S;

impl S {
    /// Makes one.
    fn one() -> u8 {
        1
    }
}
"""

    assert _docs_for(source, 6) == ["Makes one."]


def test_foreign_declaration_docs():
    source = """extern "C" {
    /// Absolute value.
    fn abs(input: i32) -> i32;
}
"""

    assert _docs_for(source, 3) == ["Absolute value."]


def test_comment_doc_style():
    assert comment_doc_style("/// outer") == OUTER
    assert comment_doc_style("//! inner") == INNER
    assert comment_doc_style("/** outer */") == OUTER
    assert comment_doc_style("/*! inner */") == INNER
    assert comment_doc_style("//// plain") is None
    assert comment_doc_style("/*** plain */") is None
    assert comment_doc_style("/**/") is None
    assert comment_doc_style("// plain") is None


def test_unescape_rust_string():
    assert unescape_rust_string(r'"tab\there"') == "tab\there"
    assert unescape_rust_string(r'"\x41\u{1F600}"') == "A\U0001F600"
    assert unescape_rust_string('"joined \\\n      line"') == "joined line"
    assert unescape_rust_string('r##"keeps \\n "#" raw"##') == 'keeps \\n "#" raw'
    assert unescape_rust_string('b"bytes"') is None
    assert unescape_rust_string(r'"bad \q escape"') is None
