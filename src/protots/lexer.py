"""Lexical helpers shared by every grammar rule.

The parser is scannerless: each helper looks at ``src`` starting at ``pos`` and
returns the matched value with the position just past it, or ``None`` when the
text at ``pos`` does not match. None of them skip leading whitespace; callers
run :func:`skip` first.
"""

from __future__ import annotations

import re
import string


_WS_RE = re.compile(r"[ \t\r\n\f\v]+")
_LINE_COMMENT_RE = re.compile(r"//[^\r\n]*")
_IDENT_RE = re.compile(r"[A-Za-z][A-Za-z0-9._]*")
# Field/enum numbers: a maximal run of digits and '-', validated on conversion.
_NUMBER_RE = re.compile(r"[0-9-]+")
_OPTION_NUMBER_RE = re.compile(r"[0-9-]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")

_IDENT_CHARS = frozenset(string.ascii_letters + string.digits + "._")


def skip(src: str, pos: int) -> int:
    """Skip any mix of whitespace, // line comments and /* block */ comments."""
    n = len(src)
    while pos < n:
        m = _WS_RE.match(src, pos)
        if m:
            pos = m.end()
            continue
        m = _LINE_COMMENT_RE.match(src, pos)
        if m:
            pos = m.end()
            continue
        if src.startswith("/*", pos):
            end = src.find("*/", pos + 2)
            if end < 0:
                # Unterminated: leave it for the grammar to trip over.
                return pos
            pos = end + 2
            continue
        break
    return pos


def match_literal(src: str, pos: int, text: str) -> int | None:
    if src.startswith(text, pos):
        return pos + len(text)
    return None


def match_keyword(src: str, pos: int, word: str) -> int | None:
    """Match ``word`` as a whole word, so ``message`` never matches ``messages``."""
    if not src.startswith(word, pos):
        return None
    end = pos + len(word)
    if end < len(src) and src[end] in _IDENT_CHARS:
        return None
    return end


def match_identifier(src: str, pos: int) -> tuple[str, int] | None:
    """A letter followed by letters, digits, '.' or '_' (``google.protobuf.Timestamp`` is one identifier)."""
    m = _IDENT_RE.match(src, pos)
    if m is None:
        return None
    return m.group(0), m.end()


def match_string(src: str, pos: int) -> tuple[str, int] | None:
    """A double-quoted literal; the raw contents (escapes untouched) are returned."""
    n = len(src)
    if pos >= n or src[pos] != '"':
        return None
    i = pos + 1
    while i < n:
        ch = src[i]
        if ch == '"':
            return src[pos + 1 : i], i + 1
        if ch == "\\":
            if i + 1 >= n:
                return None
            i += 2
            continue
        i += 1
    return None


def match_number(src: str, pos: int) -> tuple[str, int] | None:
    m = _NUMBER_RE.match(src, pos)
    if m is None:
        return None
    return m.group(0), m.end()


def match_option_number(src: str, pos: int) -> tuple[str, int] | None:
    m = _OPTION_NUMBER_RE.match(src, pos)
    if m is None:
        return None
    return m.group(0), m.end()


def match_boolean(src: str, pos: int) -> tuple[bool, int] | None:
    for word, value in (("true", True), ("false", False)):
        end = match_keyword(src, pos, word)
        if end is not None:
            return value, end
    return None


def fragment(src: str, pos: int, *, limit: int = 32) -> str:
    """The text at ``pos`` up to the end of its line, for diagnostics."""
    end = len(src)
    for stop in ("\n", "\r"):
        j = src.find(stop, pos)
        if j >= 0:
            end = min(end, j)
    text = src[pos:end]
    if len(text) > limit:
        return text[:limit] + "..."
    if not text and pos >= len(src):
        return "<end of input>"
    return text
