"""
Proto language facts in one place:

- **Keyword policy**: the leading keywords that select a grammar rule
- **Type families**: scalar type names grouped by how they validate

This module is meant to be *human scannable*.
"""

from __future__ import annotations

from enum import Enum


# ---------------------------------------------------------------------------
# Keyword policy
# ---------------------------------------------------------------------------

# Keywords that start a top-level declaration, in the order they are tried.
TOP_LEVEL_KEYWORDS: tuple[str, ...] = (
    "import",
    "package",
    "extend",
    "option",
    "message",
    "enum",
    "service",
)

IMPORT_MODIFIERS: tuple[str, ...] = ("public", "weak")


class Flag(str, Enum):
    """Field presence/multiplicity marker."""

    NONE = "none"
    OPTIONAL = "optional"
    REPEATED = "repeated"
    REQUIRED = "required"  # proto2 only


FLAG_KEYWORDS: dict[str, Flag] = {
    "optional": Flag.OPTIONAL,
    "repeated": Flag.REPEATED,
    "required": Flag.REQUIRED,
}

# ---------------------------------------------------------------------------
# Type families
# ---------------------------------------------------------------------------

STRING_TYPES: frozenset[str] = frozenset({"string", "bytes"})

NUMBER_TYPES: frozenset[str] = frozenset(
    {
        "int32",
        "uint32",
        "sint32",
        "fixed32",
        "sfixed32",
        "float",
        "double",
    }
)

# 64-bit integers do not fit a JS number.
BIGINT_TYPES: frozenset[str] = frozenset(
    {
        "int64",
        "uint64",
        "sint64",
        "fixed64",
        "sfixed64",
    }
)

BOOL_TYPES: frozenset[str] = frozenset({"bool"})

TIMESTAMP_TYPE = "google.protobuf.Timestamp"

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
