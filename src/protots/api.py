from __future__ import annotations

import logging
from pathlib import Path

from .ast import ProtoFile
from .errors import FileReadError, InputFileNotFoundError
from .parser import parse
from .zod import to_schema


logger = logging.getLogger(__name__)


def read_source(path: str | Path) -> str:
    p = Path(path).expanduser()
    if not p.exists():
        raise InputFileNotFoundError(path=str(path))
    try:
        return p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(path=str(path), reason=str(e)) from e


def parse_source(src: str, *, file: str = "<memory>") -> ProtoFile:
    return parse(src, file=file)


def parse_file(path: str | Path) -> ProtoFile:
    # The label is the path as given; it ends up in the generated banner.
    return parse_source(read_source(path), file=str(path))


def compile_source(src: str, *, file: str = "<memory>") -> str:
    """Parse ``src`` and return the zod schema module for it."""
    return to_schema(parse_source(src, file=file))


def compile_file(path: str | Path) -> str:
    logger.debug("compiling %s", path)
    return to_schema(parse_file(path))
