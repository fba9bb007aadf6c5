from __future__ import annotations

from dataclasses import dataclass

from .spans import Span


class ProtoTsError(Exception):
    """Base class for every error the compiler reports."""


@dataclass(slots=True)
class InputFileNotFoundError(ProtoTsError):
    path: str

    def __str__(self) -> str:
        return f"input file does not exist: {self.path}"


@dataclass(slots=True)
class FileReadError(ProtoTsError):
    path: str
    reason: str

    def __str__(self) -> str:
        return f"failed to read file: {self.reason}"


@dataclass(slots=True)
class ParseError(ProtoTsError):
    span: Span
    message: str
    hint: str | None = None

    def __str__(self) -> str:
        base = f"proto parsing failed: {self.span.format()}: {self.message}"
        if self.hint:
            return f"{base}\nhint: {self.hint}"
        return base


@dataclass(slots=True)
class IncompleteParseError(ProtoTsError):
    """The declarations so far were valid but the rest of the input is not a known construct."""

    span: Span
    fragment: str
    hint: str | None = None

    def __str__(self) -> str:
        base = f"proto parsing was incomplete: {self.span.format()}: unrecognized input {self.fragment!r}"
        if self.hint:
            return f"{base}\nhint: {self.hint}"
        return base


@dataclass(slots=True)
class TypeNotFoundError(ProtoTsError):
    name: str  # as written in the source
    span: Span | None = None

    def __str__(self) -> str:
        base = f"could not find type named: {self.name}"
        if self.span is not None:
            return f"{base}\n  at {self.span.format()}"
        return base
