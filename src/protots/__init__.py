from __future__ import annotations

from .api import compile_file, compile_source, parse_file, parse_source, read_source
from .context import Context, ProtoType
from .errors import (
    FileReadError,
    IncompleteParseError,
    InputFileNotFoundError,
    ParseError,
    ProtoTsError,
    TypeNotFoundError,
)
from .zod import generate, to_schema

__all__ = [
    "Context",
    "FileReadError",
    "IncompleteParseError",
    "InputFileNotFoundError",
    "ParseError",
    "ProtoTsError",
    "ProtoType",
    "TypeNotFoundError",
    "compile_file",
    "compile_source",
    "generate",
    "parse_file",
    "parse_source",
    "read_source",
    "to_schema",
]
