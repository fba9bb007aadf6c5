from __future__ import annotations

from dataclasses import dataclass, field

from .proto3 import Flag
from .spans import Span


@dataclass(frozen=True, slots=True)
class Node:
    # Keyword-only so hand-built trees (tests, tooling) can leave it out.
    span: Span | None = field(default=None, kw_only=True, compare=False)


@dataclass(frozen=True, slots=True)
class Constant(Node):
    kind: str  # "ident" | "int" | "float" | "string" | "bool" | "aggregate"
    value: object  # None for "aggregate": the contents are validated, not kept


@dataclass(frozen=True, slots=True)
class Option(Node):
    """``option name = value;`` or one ``name = value`` entry of a ``[...]`` list.

    Custom option names keep their parentheses: ``(google.api.http).body``.
    """

    name: str
    value: Constant


@dataclass(frozen=True, slots=True)
class Import(Node):
    path: str  # raw string literal content, not unescaped
    modifier: str | None = None  # "weak" | "public" | None


@dataclass(frozen=True, slots=True)
class Package(Node):
    name: str


@dataclass(frozen=True, slots=True)
class ReservedRange(Node):
    start: int
    end: int | None = None  # inclusive; None means single value
    end_is_max: bool = False


@dataclass(frozen=True, slots=True)
class Reserved(Node):
    # Exactly one of the two is non-empty.
    ranges: tuple[ReservedRange, ...] = ()
    names: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Extensions(Node):
    ranges: tuple[ReservedRange, ...] = ()


@dataclass(frozen=True, slots=True)
class SingleField(Node):
    name: str
    type_name: str
    number: int
    flag: Flag = Flag.NONE
    options: tuple[Option, ...] = ()


@dataclass(frozen=True, slots=True)
class MapField(Node):
    name: str
    key_type: str
    value_type: str
    number: int
    options: tuple[Option, ...] = ()


@dataclass(frozen=True, slots=True)
class Oneof(Node):
    name: str
    fields: tuple[SingleField, ...] = ()
    options: tuple[Option, ...] = ()


@dataclass(frozen=True, slots=True)
class EnumValue(Node):
    name: str
    number: int
    options: tuple[Option, ...] = ()


@dataclass(frozen=True, slots=True)
class Enum(Node):
    name: str
    values: tuple[EnumValue | Reserved | Option, ...] = ()


@dataclass(frozen=True, slots=True)
class Extend(Node):
    name: str
    fields: tuple[SingleField, ...] = ()


@dataclass(frozen=True, slots=True)
class Message(Node):
    name: str
    fields: tuple[Field, ...] = ()


Field = SingleField | MapField | Oneof | Message | Enum | Reserved | Extensions | Option | Extend


@dataclass(frozen=True, slots=True)
class Rpc(Node):
    name: str
    request: str
    response: str
    request_stream: bool = False
    response_stream: bool = False
    options: tuple[Option, ...] = ()


@dataclass(frozen=True, slots=True)
class Service(Node):
    name: str
    body: tuple[Rpc | Option, ...] = ()


TopLevel = Import | Package | Option | Message | Enum | Extend | Service


@dataclass(frozen=True, slots=True)
class ProtoFile(Node):
    syntax: str
    items: tuple[TopLevel, ...] = ()
    file: str = "<memory>"

    # convenience indexes; computed by the parser
    imports: tuple[Import, ...] = ()
    package: Package | None = None

    def declarations(self) -> tuple[Message | Enum, ...]:
        """Top-level messages and enums, the only items that generate code."""
        return tuple(it for it in self.items if isinstance(it, (Message, Enum)))
