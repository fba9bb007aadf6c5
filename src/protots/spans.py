from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Position:
    """A concrete source position.

    Offsets are 0-based; line/column are 1-based for user-facing messages.
    """

    offset: int
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open span [start, end) in a single file."""

    file: str
    start: Position
    end: Position

    def format(self) -> str:
        return f"{self.file}:{self.start.line}:{self.start.column}"


@dataclass(frozen=True, slots=True)
class LineIndex:
    """Maps offsets in one source text to line/column positions."""

    file: str
    line_starts: tuple[int, ...]

    @classmethod
    def of(cls, src: str, *, file: str) -> "LineIndex":
        starts = [0]
        for i, ch in enumerate(src):
            if ch == "\n":
                starts.append(i + 1)
        return cls(file=file, line_starts=tuple(starts))

    def position(self, offset: int) -> Position:
        line = bisect_right(self.line_starts, offset)
        return Position(offset=offset, line=line, column=offset - self.line_starts[line - 1] + 1)

    def span(self, start: int, end: int) -> Span:
        return Span(file=self.file, start=self.position(start), end=self.position(max(start, end)))
