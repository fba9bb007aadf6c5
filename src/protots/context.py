from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from . import ast as A


logger = logging.getLogger(__name__)

SCHEMA_SUFFIX = "Schema"


@dataclass(frozen=True, slots=True)
class ProtoType:
    """Names a message/enum goes by: in proto, as a TypeScript type, as a zod schema."""

    full_name: str  # "Outer.Inner"
    ts_name: str  # "Outer_Inner"
    schema: str  # "Outer_InnerSchema"

    @classmethod
    def scoped(cls, name: str, scope: Iterable[str] = ()) -> ProtoType:
        parts = [*scope, name]
        ts_name = "_".join(parts)
        return cls(full_name=".".join(parts), ts_name=ts_name, schema=ts_name + SCHEMA_SUFFIX)


@dataclass(frozen=True, slots=True)
class Context:
    """Every message/enum of one file, keyed by full dotted name.

    Built in full before generation starts, since a field may refer to a type
    declared further down the file.
    """

    types: Mapping[str, ProtoType]

    @classmethod
    def build(cls, pf: A.ProtoFile) -> Context:
        types: dict[str, ProtoType] = {}

        def add(decl: A.Message | A.Enum, scope: tuple[str, ...]) -> None:
            pt = ProtoType.scoped(decl.name, scope)
            if pt.full_name in types:
                logger.warning("%s: duplicate declaration of %s, the last one wins", pf.file, pt.full_name)
            types[pt.full_name] = pt
            if isinstance(decl, A.Message):
                for f in decl.fields:
                    if isinstance(f, (A.Message, A.Enum)):
                        add(f, (*scope, decl.name))

        for decl in pf.declarations():
            add(decl, ())

        logger.debug("%s: %d type(s) declared", pf.file, len(types))
        return cls(types=MappingProxyType(types))

    def resolve(self, name: str, scope: ProtoType | None = None) -> ProtoType | None:
        """Look ``name`` up verbatim, then relative to ``scope``.

        Only the scope itself is searched, not its ancestors: from inside
        ``A.B`` the short name ``C`` finds ``C`` or ``A.B.C`` but never ``A.C``.
        """
        found = self.types.get(name)
        if found is None and scope is not None:
            found = self.types.get(f"{scope.full_name}.{name}")
        return found

    def declared(self, name: str, scope: ProtoType | None = None) -> ProtoType | None:
        """The entry of a declaration named ``name`` directly inside ``scope``."""
        full_name = name if scope is None else f"{scope.full_name}.{name}"
        return self.types.get(full_name)
