"""Recursive-descent grammar for proto IDL files.

Every rule is a method that takes the position to start at and returns
``(node, position_after)``. A rule that does not match raises ``_Mismatch``;
ordered alternation (``_first``) and repetition (``_many``) catch it and move
on, so the first alternative that matches wins. The furthest position any rule
reached is remembered for diagnostics.

Only a malformed ``syntax`` header or an unconvertible integer is a
``ParseError``. After the header, top-level declarations are matched for as
long as they parse; any input left over is an ``IncompleteParseError`` whose
hint names the furthest position the grammar reached inside it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from . import ast as A
from .errors import IncompleteParseError, ParseError
from .lexer import (
    fragment,
    match_boolean,
    match_identifier,
    match_keyword,
    match_literal,
    match_number,
    match_option_number,
    match_string,
    skip,
)
from .proto3 import FLAG_KEYWORDS, IMPORT_MODIFIERS, INT32_MAX, INT32_MIN, TOP_LEVEL_KEYWORDS, Flag
from .spans import LineIndex, Span


logger = logging.getLogger(__name__)

Rule = Callable[[int], tuple[Any, int]]


class _Mismatch(Exception):
    def __init__(self, pos: int) -> None:
        super().__init__(pos)
        self.pos = pos


@dataclass(slots=True)
class _Failure:
    pos: int
    expected: set[str]
    trace: tuple[str, ...]
    detail: str | None = None


@dataclass(slots=True)
class Parser:
    src: str
    file: str = "<memory>"
    lines: LineIndex = field(init=False)
    _rules: list[str] = field(init=False, default_factory=list)
    _furthest: _Failure | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.lines = LineIndex.of(self.src, file=self.file)

    # -----------------------------------------------------------------------
    # Entry point
    # -----------------------------------------------------------------------

    def parse(self) -> A.ProtoFile:
        top_level: dict[str, Rule] = {
            "import": self._import,
            "package": self._package,
            "extend": self._extend,
            "option": self._option_stmt,
            "message": self._message,
            "enum": self._enum,
            "service": self._service,
        }

        try:
            syntax, pos = self._syntax(0)
        except _Mismatch:
            raise self._error() from None

        items: list[A.TopLevel] = []
        while True:
            try:
                item, pos = self._first(pos, *(top_level[kw] for kw in TOP_LEVEL_KEYWORDS))
            except _Mismatch:
                break
            items.append(item)

        pos = skip(self.src, pos)
        if pos < len(self.src):
            raise IncompleteParseError(
                span=self._span(pos, len(self.src)),
                fragment=fragment(self.src, pos),
                hint=self._diagnostic(pos),
            )

        logger.debug("parsed %s: syntax %r, %d top-level item(s)", self.file, syntax, len(items))
        return A.ProtoFile(
            span=self._span(0, len(self.src)),
            syntax=syntax,
            items=tuple(items),
            file=self.file,
            imports=tuple(it for it in items if isinstance(it, A.Import)),
            package=next((it for it in items if isinstance(it, A.Package)), None),
        )

    # -----------------------------------------------------------------------
    # Failure bookkeeping
    # -----------------------------------------------------------------------

    @contextmanager
    def _rule(self, name: str) -> Iterator[None]:
        self._rules.append(name)
        try:
            yield
        finally:
            self._rules.pop()

    def _fail(self, pos: int, expected: str, detail: str | None = None) -> _Mismatch:
        f = self._furthest
        if f is None or pos > f.pos:
            self._furthest = _Failure(pos=pos, expected={expected}, trace=tuple(self._rules), detail=detail)
        elif pos == f.pos:
            f.expected.add(expected)
            if f.detail is None:
                f.detail = detail
        return _Mismatch(pos)

    def _message_for(self, f: _Failure) -> str:
        message = f"expected {' or '.join(sorted(f.expected))}, found {fragment(self.src, f.pos)!r}"
        if f.detail:
            message = f"{f.detail}: {message}"
        return message

    def _error(self) -> ParseError:
        f = self._furthest or _Failure(pos=0, expected={"'syntax'"}, trace=())
        hint = "while parsing " + " > ".join(f.trace) if f.trace else None
        return ParseError(span=self._span(f.pos, f.pos), message=self._message_for(f), hint=hint)

    def _diagnostic(self, pos: int) -> str | None:
        """Where the grammar gave up on the unconsumed input starting at ``pos``."""
        f = self._furthest
        if f is None or f.pos < pos:
            return None
        text = f"{self._span(f.pos, f.pos).format()}: {self._message_for(f)}"
        if f.trace:
            text += " while parsing " + " > ".join(f.trace)
        return text

    def _invalid(self, pos: int, message: str) -> ParseError:
        hint = "while parsing " + " > ".join(self._rules) if self._rules else None
        return ParseError(span=self._span(pos, pos), message=message, hint=hint)

    def _span(self, start: int, end: int) -> Span:
        return self.lines.span(start, end)

    # -----------------------------------------------------------------------
    # Combinators
    # -----------------------------------------------------------------------

    def _first(self, pos: int, *rules: Rule) -> tuple[Any, int]:
        for rule in rules:
            try:
                return rule(pos)
            except _Mismatch:
                continue
        raise _Mismatch(pos)

    def _many(self, pos: int, rule: Rule) -> tuple[list[Any], int]:
        out: list[Any] = []
        while True:
            try:
                item, nxt = rule(pos)
            except _Mismatch:
                return out, pos
            if nxt == pos:
                return out, pos
            out.append(item)
            pos = nxt

    def _sep_by1(self, pos: int, rule: Rule, sep: str = ",") -> tuple[list[Any], int]:
        first, pos = rule(pos)
        out = [first]
        while True:
            try:
                item, nxt = rule(self._lit(pos, sep))
            except _Mismatch:
                return out, pos
            out.append(item)
            pos = nxt

    # -----------------------------------------------------------------------
    # Tokens (each skips whitespace/comments on both sides)
    # -----------------------------------------------------------------------

    def _lit(self, pos: int, text: str) -> int:
        pos = skip(self.src, pos)
        end = match_literal(self.src, pos, text)
        if end is None:
            raise self._fail(pos, repr(text))
        return skip(self.src, end)

    def _opt_lit(self, pos: int, text: str) -> int:
        try:
            return self._lit(pos, text)
        except _Mismatch:
            return pos

    def _kw(self, pos: int, word: str) -> int:
        pos = skip(self.src, pos)
        end = match_keyword(self.src, pos, word)
        if end is None:
            raise self._fail(pos, repr(word))
        return skip(self.src, end)

    def _opt_kw(self, pos: int, word: str) -> int | None:
        try:
            return self._kw(pos, word)
        except _Mismatch:
            return None

    def _ident(self, pos: int) -> tuple[str, int]:
        pos = skip(self.src, pos)
        m = match_identifier(self.src, pos)
        if m is None:
            raise self._fail(pos, "identifier")
        value, end = m
        return value, skip(self.src, end)

    def _string(self, pos: int) -> tuple[str, int]:
        pos = skip(self.src, pos)
        m = match_string(self.src, pos)
        if m is None:
            raise self._fail(pos, "string literal")
        value, end = m
        return value, skip(self.src, end)

    def _number(self, pos: int) -> tuple[int, int]:
        pos = skip(self.src, pos)
        m = match_number(self.src, pos)
        if m is None:
            raise self._fail(pos, "integer")
        lexeme, end = m
        # The token matched; a failed conversion is a hard error, never a reason to backtrack.
        try:
            value = int(lexeme)
        except ValueError:
            raise self._invalid(pos, f"invalid integer {lexeme!r}") from None
        if not INT32_MIN <= value <= INT32_MAX:
            raise self._invalid(pos, f"integer {lexeme} is out of range")
        return value, skip(self.src, end)

    # -----------------------------------------------------------------------
    # File header and top-level statements
    # -----------------------------------------------------------------------

    def _syntax(self, pos: int) -> tuple[str, int]:
        with self._rule("syntax"):
            pos = self._kw(pos, "syntax")
            pos = self._lit(pos, "=")
            version, pos = self._string(pos)
            pos = self._lit(pos, ";")
        return version, pos

    def _import(self, pos: int) -> tuple[A.Import, int]:
        start = skip(self.src, pos)
        with self._rule("import"):
            pos = self._kw(start, "import")
            modifier = None
            for word in IMPORT_MODIFIERS:
                end = self._opt_kw(pos, word)
                if end is not None:
                    modifier, pos = word, end
                    break
            path, pos = self._string(pos)
            pos = self._lit(pos, ";")
        return A.Import(span=self._span(start, pos), path=path, modifier=modifier), pos

    def _package(self, pos: int) -> tuple[A.Package, int]:
        start = skip(self.src, pos)
        with self._rule("package"):
            pos = self._kw(start, "package")
            name, pos = self._ident(pos)
            pos = self._lit(pos, ";")
        return A.Package(span=self._span(start, pos), name=name), pos

    # -----------------------------------------------------------------------
    # Options
    # -----------------------------------------------------------------------

    def _option_stmt(self, pos: int) -> tuple[A.Option, int]:
        with self._rule("option"):
            pos = self._kw(pos, "option")
            opt, pos = self._option_entry(pos)
            pos = self._lit(pos, ";")
        return opt, pos

    def _option_entry(self, pos: int) -> tuple[A.Option, int]:
        start = skip(self.src, pos)
        name, pos = self._option_name(start)
        pos = self._lit(pos, "=")
        value, pos = self._option_value(pos)
        return A.Option(span=self._span(start, pos), name=name, value=value), pos

    def _option_name(self, pos: int) -> tuple[str, int]:
        try:
            pos = self._lit(pos, "(")
        except _Mismatch:
            return self._ident(pos)
        base, pos = self._ident(pos)
        pos = self._lit(pos, ")")
        name = f"({base})"
        try:
            suffix, after = self._ident(self._lit(pos, "."))
        except _Mismatch:
            return name, pos
        return f"{name}.{suffix}", after

    def _option_value(self, pos: int) -> tuple[A.Constant, int]:
        return self._first(
            pos,
            self._const_string,
            self._const_number,
            self._const_bool,
            self._aggregate,
            self._const_ident,
        )

    def _const_string(self, pos: int) -> tuple[A.Constant, int]:
        start = skip(self.src, pos)
        value, pos = self._string(start)
        return A.Constant(span=self._span(start, pos), kind="string", value=value), pos

    def _const_number(self, pos: int) -> tuple[A.Constant, int]:
        start = skip(self.src, pos)
        m = match_option_number(self.src, start)
        if m is None:
            raise self._fail(start, "number")
        lexeme, end = m
        try:
            if any(c in lexeme for c in ".eE"):
                const = A.Constant(span=self._span(start, end), kind="float", value=float(lexeme))
            else:
                const = A.Constant(span=self._span(start, end), kind="int", value=int(lexeme))
        except ValueError:
            raise self._fail(start, "number", detail=f"invalid number {lexeme!r}") from None
        return const, skip(self.src, end)

    def _const_bool(self, pos: int) -> tuple[A.Constant, int]:
        start = skip(self.src, pos)
        m = match_boolean(self.src, start)
        if m is None:
            raise self._fail(start, "'true' or 'false'")
        value, end = m
        return A.Constant(span=self._span(start, end), kind="bool", value=value), skip(self.src, end)

    def _const_ident(self, pos: int) -> tuple[A.Constant, int]:
        start = skip(self.src, pos)
        value, pos = self._ident(start)
        return A.Constant(span=self._span(start, pos), kind="ident", value=value), pos

    def _aggregate(self, pos: int) -> tuple[A.Constant, int]:
        start = skip(self.src, pos)
        with self._rule("aggregate value"):
            pos = self._lit(start, "{")
            _, pos = self._many(pos, self._aggregate_entry)
            pos = self._lit(pos, "}")
        return A.Constant(span=self._span(start, pos), kind="aggregate", value=None), pos

    def _aggregate_entry(self, pos: int) -> tuple[None, int]:
        _, pos = self._first(pos, self._ident, self._extension_key)
        try:
            after = self._lit(pos, ":")
        except _Mismatch:
            # `key { ... }` and `key [ ... ]` may leave out the colon.
            _, pos = self._first(pos, self._aggregate, self._list_value)
        else:
            _, pos = self._first(after, self._option_value, self._list_value)
        end = self._opt_lit(pos, ",")
        if end == pos:
            end = self._opt_lit(pos, ";")
        return None, end

    def _extension_key(self, pos: int) -> tuple[str, int]:
        pos = self._lit(pos, "[")
        name, pos = self._ident(pos)
        pos = self._lit(pos, "]")
        return name, pos

    def _list_value(self, pos: int) -> tuple[None, int]:
        pos = self._lit(pos, "[")
        try:
            _, pos = self._sep_by1(pos, self._option_value)
        except _Mismatch:
            pass
        pos = self._lit(pos, "]")
        return None, pos

    def _field_options(self, pos: int) -> tuple[tuple[A.Option, ...], int]:
        with self._rule("field options"):
            pos = self._lit(pos, "[")
            entries, pos = self._sep_by1(pos, self._option_entry)
            pos = self._lit(pos, "]")
        return tuple(entries), pos

    def _opt_field_options(self, pos: int) -> tuple[tuple[A.Option, ...], int]:
        try:
            return self._field_options(pos)
        except _Mismatch:
            return (), pos

    # -----------------------------------------------------------------------
    # Messages and fields
    # -----------------------------------------------------------------------

    def _message(self, pos: int) -> tuple[A.Message, int]:
        start = skip(self.src, pos)
        pos = self._kw(start, "message")
        name, pos = self._ident(pos)
        with self._rule(f"message {name!r}"):
            pos = self._lit(pos, "{")
            fields, pos = self._many(pos, self._message_element)
            pos = self._lit(pos, "}")
        pos = self._opt_lit(pos, ";")
        return A.Message(span=self._span(start, pos), name=name, fields=tuple(fields)), pos

    def _message_element(self, pos: int) -> tuple[A.Field, int]:
        # Reserved leading words (oneof, reserved, option) must be tried before
        # the generic typed-field rule, which would accept them as type names.
        return self._first(
            pos,
            self._oneof,
            self._reserved,
            self._option_stmt,
            self._single_field,
            self._map_field,
            self._extensions,
            self._message,
            self._enum,
            self._extend,
        )

    def _flag(self, pos: int) -> tuple[Flag, int]:
        for word, flag in FLAG_KEYWORDS.items():
            end = self._opt_kw(pos, word)
            if end is not None:
                return flag, end
        return Flag.NONE, pos

    def _single_field(self, pos: int) -> tuple[A.SingleField, int]:
        start = skip(self.src, pos)
        with self._rule("field"):
            flag, pos = self._flag(start)
            type_name, pos = self._ident(pos)
            name, pos = self._ident(pos)
            pos = self._lit(pos, "=")
            number, pos = self._number(pos)
            options, pos = self._opt_field_options(pos)
            pos = self._lit(pos, ";")
        return (
            A.SingleField(
                span=self._span(start, pos),
                name=name,
                type_name=type_name,
                number=number,
                flag=flag,
                options=options,
            ),
            pos,
        )

    def _map_field(self, pos: int) -> tuple[A.MapField, int]:
        start = skip(self.src, pos)
        with self._rule("map field"):
            pos = self._kw(start, "map")
            pos = self._lit(pos, "<")
            key_type, pos = self._ident(pos)
            pos = self._lit(pos, ",")
            value_type, pos = self._ident(pos)
            pos = self._lit(pos, ">")
            name, pos = self._ident(pos)
            pos = self._lit(pos, "=")
            number, pos = self._number(pos)
            options, pos = self._opt_field_options(pos)
            pos = self._lit(pos, ";")
        return (
            A.MapField(
                span=self._span(start, pos),
                name=name,
                key_type=key_type,
                value_type=value_type,
                number=number,
                options=options,
            ),
            pos,
        )

    def _oneof(self, pos: int) -> tuple[A.Oneof, int]:
        start = skip(self.src, pos)
        pos = self._kw(start, "oneof")
        name, pos = self._ident(pos)
        with self._rule(f"oneof {name!r}"):
            pos = self._lit(pos, "{")
            elems, pos = self._many(pos, lambda p: self._first(p, self._option_stmt, self._single_field))
            pos = self._lit(pos, "}")
        pos = self._opt_lit(pos, ";")
        return (
            A.Oneof(
                span=self._span(start, pos),
                name=name,
                fields=tuple(e for e in elems if isinstance(e, A.SingleField)),
                options=tuple(e for e in elems if isinstance(e, A.Option)),
            ),
            pos,
        )

    def _range(self, pos: int) -> tuple[A.ReservedRange, int]:
        start = skip(self.src, pos)
        first, pos = self._number(start)
        after_to = self._opt_kw(pos, "to")
        if after_to is None:
            return A.ReservedRange(span=self._span(start, pos), start=first), pos
        after_max = self._opt_kw(after_to, "max")
        if after_max is not None:
            return A.ReservedRange(span=self._span(start, after_max), start=first, end_is_max=True), after_max
        last, pos = self._number(after_to)
        return A.ReservedRange(span=self._span(start, pos), start=first, end=last), pos

    def _reserved(self, pos: int) -> tuple[A.Reserved, int]:
        start = skip(self.src, pos)
        with self._rule("reserved"):
            pos = self._kw(start, "reserved")
            # Whichever list kind matches first must continue to the ';'.
            try:
                ranges, end = self._sep_by1(pos, self._range)
                names: list[str] = []
            except _Mismatch:
                names, end = self._sep_by1(pos, self._string)
                ranges = []
            end = self._lit(end, ";")
        return A.Reserved(span=self._span(start, end), ranges=tuple(ranges), names=tuple(names)), end

    def _extensions(self, pos: int) -> tuple[A.Extensions, int]:
        start = skip(self.src, pos)
        with self._rule("extensions"):
            pos = self._kw(start, "extensions")
            ranges, pos = self._sep_by1(pos, self._range)
            pos = self._lit(pos, ";")
        return A.Extensions(span=self._span(start, pos), ranges=tuple(ranges)), pos

    def _extend(self, pos: int) -> tuple[A.Extend, int]:
        start = skip(self.src, pos)
        pos = self._kw(start, "extend")
        name, pos = self._ident(pos)
        with self._rule(f"extend {name!r}"):
            pos = self._lit(pos, "{")
            fields, pos = self._many(pos, self._single_field)
            pos = self._lit(pos, "}")
        pos = self._opt_lit(pos, ";")
        return A.Extend(span=self._span(start, pos), name=name, fields=tuple(fields)), pos

    # -----------------------------------------------------------------------
    # Enums
    # -----------------------------------------------------------------------

    def _enum(self, pos: int) -> tuple[A.Enum, int]:
        start = skip(self.src, pos)
        pos = self._kw(start, "enum")
        name, pos = self._ident(pos)
        with self._rule(f"enum {name!r}"):
            pos = self._lit(pos, "{")
            values, pos = self._many(
                pos, lambda p: self._first(p, self._reserved, self._option_stmt, self._enum_value)
            )
            pos = self._lit(pos, "}")
        pos = self._opt_lit(pos, ";")
        return A.Enum(span=self._span(start, pos), name=name, values=tuple(values)), pos

    def _enum_value(self, pos: int) -> tuple[A.EnumValue, int]:
        start = skip(self.src, pos)
        with self._rule("enum value"):
            name, pos = self._ident(start)
            pos = self._lit(pos, "=")
            number, pos = self._number(pos)
            options, pos = self._opt_field_options(pos)
            pos = self._lit(pos, ";")
        return A.EnumValue(span=self._span(start, pos), name=name, number=number, options=options), pos

    # -----------------------------------------------------------------------
    # Services
    # -----------------------------------------------------------------------

    def _service(self, pos: int) -> tuple[A.Service, int]:
        start = skip(self.src, pos)
        pos = self._kw(start, "service")
        name, pos = self._ident(pos)
        with self._rule(f"service {name!r}"):
            pos = self._lit(pos, "{")
            body, pos = self._many(pos, lambda p: self._first(p, self._rpc, self._option_stmt))
            pos = self._lit(pos, "}")
        pos = self._opt_lit(pos, ";")
        return A.Service(span=self._span(start, pos), name=name, body=tuple(body)), pos

    def _rpc(self, pos: int) -> tuple[A.Rpc, int]:
        start = skip(self.src, pos)
        pos = self._kw(start, "rpc")
        name, pos = self._ident(pos)
        with self._rule(f"rpc {name!r}"):
            request_stream, request, pos = self._rpc_type(pos)
            pos = self._kw(pos, "returns")
            response_stream, response, pos = self._rpc_type(pos)
            options, pos = self._rpc_body(pos)
        return (
            A.Rpc(
                span=self._span(start, pos),
                name=name,
                request=request,
                response=response,
                request_stream=request_stream,
                response_stream=response_stream,
                options=options,
            ),
            pos,
        )

    def _rpc_type(self, pos: int) -> tuple[bool, str, int]:
        pos = self._lit(pos, "(")
        after_stream = self._opt_kw(pos, "stream")
        if after_stream is not None:
            pos = after_stream
        type_name, pos = self._ident(pos)
        pos = self._lit(pos, ")")
        return after_stream is not None, type_name, pos

    def _rpc_body(self, pos: int) -> tuple[tuple[A.Option, ...], int]:
        try:
            return (), self._lit(pos, ";")
        except _Mismatch:
            pass
        pos = self._lit(pos, "{")
        elems, pos = self._many(pos, lambda p: self._first(p, self._option_stmt, self._empty_stmt))
        pos = self._lit(pos, "}")
        pos = self._opt_lit(pos, ";")
        return tuple(e for e in elems if isinstance(e, A.Option)), pos

    def _empty_stmt(self, pos: int) -> tuple[None, int]:
        return None, self._lit(pos, ";")


def parse(src: str, *, file: str = "<memory>") -> A.ProtoFile:
    """Parse a whole proto file; the entire input must be consumed."""
    return Parser(src, file=file).parse()
