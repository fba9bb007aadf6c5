from __future__ import annotations

import pytest

from protots.lexer import (
    fragment,
    match_boolean,
    match_identifier,
    match_keyword,
    match_number,
    match_option_number,
    match_string,
    skip,
)
from protots.spans import LineIndex


def test_skip_mixes_whitespace_and_comments() -> None:
    src = "  // line\n\t/* block\n * still */  \n// last\nmessage"
    assert src[skip(src, 0) :] == "message"


def test_skip_block_comment_ends_at_first_close() -> None:
    src = "/* a */ */"
    assert src[skip(src, 0) :] == "*/"


def test_skip_stops_at_unterminated_block_comment() -> None:
    assert skip("  /* open", 0) == 2


def test_skip_at_end_of_input() -> None:
    assert skip("   ", 0) == 3
    assert skip("", 0) == 0


@pytest.mark.parametrize(
    ("src", "word", "expected"),
    [
        ("message A", "message", 7),
        ("message{", "message", 7),
        ("message", "message", 7),
        ("messages", "message", None),
        ("message_x", "message", None),
        ("message.x", "message", None),
        ("message1", "message", None),
        ("mess", "message", None),
    ],
)
def test_match_keyword(src: str, word: str, expected: int | None) -> None:
    assert match_keyword(src, 0, word) == expected


def test_match_identifier() -> None:
    assert match_identifier("google.protobuf.Timestamp ts", 0) == ("google.protobuf.Timestamp", 25)
    assert match_identifier("a_1.b2 ", 0) == ("a_1.b2", 6)
    assert match_identifier("_a", 0) is None
    assert match_identifier("1a", 0) is None
    assert match_identifier("", 0) is None


def test_match_string() -> None:
    assert match_string('"abc" rest', 0) == ("abc", 5)
    assert match_string('""', 0) == ("", 2)
    assert match_string(r'"a\"b"', 0) == (r"a\"b", 6)
    assert match_string(r'"a\tb"', 0) == (r"a\tb", 6)
    assert match_string('"a\\\nb"', 0) == ("a\\\nb", 6)
    assert match_string('"open', 0) is None
    assert match_string('"trailing\\', 0) is None
    assert match_string("'single'", 0) is None


def test_match_number() -> None:
    assert match_number("42;", 0) == ("42", 2)
    assert match_number("-7]", 0) == ("-7", 2)
    # the lexeme is a maximal run; conversion happens in the parser
    assert match_number("1-2;", 0) == ("1-2", 3)
    assert match_number("x", 0) is None


def test_match_option_number() -> None:
    assert match_option_number("1.5;", 0) == ("1.5", 3)
    assert match_option_number("-2e-3 ", 0) == ("-2e-3", 5)
    assert match_option_number("10]", 0) == ("10", 2)


def test_match_boolean() -> None:
    assert match_boolean("true;", 0) == (True, 4)
    assert match_boolean("false ", 0) == (False, 5)
    assert match_boolean("truely", 0) is None


def test_fragment() -> None:
    assert fragment("abc\ndef", 0) == "abc"
    assert fragment("abc", 3) == "<end of input>"
    assert fragment("x" * 40, 0) == "x" * 32 + "..."
    assert fragment("a\n\nb", 2) == ""


def test_line_index_positions() -> None:
    idx = LineIndex.of("ab\ncd\n\nx", file="f.proto")
    assert (idx.position(0).line, idx.position(0).column) == (1, 1)
    assert (idx.position(3).line, idx.position(3).column) == (2, 1)
    assert (idx.position(4).line, idx.position(4).column) == (2, 2)
    assert (idx.position(7).line, idx.position(7).column) == (4, 1)
    assert idx.span(3, 5).format() == "f.proto:2:1"
