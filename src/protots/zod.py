"""Emit zod schema source for the messages and enums of a parsed proto file.

Every message becomes a ``z.object`` schema plus an inferred TypeScript type;
every enum becomes a TypeScript string enum plus a ``z.nativeEnum`` schema.
Nested declarations are emitted before the message that contains them.
"""

from __future__ import annotations

import logging

from . import ast as A
from .context import Context, ProtoType
from .errors import TypeNotFoundError
from .proto3 import BIGINT_TYPES, BOOL_TYPES, NUMBER_TYPES, STRING_TYPES, TIMESTAMP_TYPE, Flag


logger = logging.getLogger(__name__)

_BUILTIN_EXPRS: dict[str, str] = {
    **{t: "z.string()" for t in STRING_TYPES},
    **{t: "z.number()" for t in NUMBER_TYPES},
    **{t: "z.coerce.bigint()" for t in BIGINT_TYPES},
    **{t: "z.boolean()" for t in BOOL_TYPES},
    TIMESTAMP_TYPE: "z.coerce.date()",
}


def to_schema(pf: A.ProtoFile) -> str:
    return generate(pf, Context.build(pf))


def generate(pf: A.ProtoFile, ctx: Context) -> str:
    out: list[str] = [
        "//",
        "// Code generated by protots - DO NOT EDIT",
        f"// Source: {pf.file}",
        "//",
        "",
        'import { z } from "zod";',
        "",
    ]
    for decl in pf.declarations():
        if isinstance(decl, A.Message):
            out.extend(_format_message(ctx, decl, None))
        else:
            out.extend(_format_enum(ctx, decl, None))
    return "\n".join(out) + "\n"


def snake_to_camel(name: str) -> str:
    """``user_id`` -> ``userId``; empty parts (``a__b``, ``_a``) are dropped."""
    parts = [p for p in name.split("_") if p]
    if not parts:
        return ""
    return parts[0] + "".join(p[0].upper() + p[1:] for p in parts[1:])


def _own_type(ctx: Context, decl: A.Message | A.Enum, scope: ProtoType | None) -> ProtoType:
    pt = ctx.declared(decl.name, scope)
    if pt is None:
        raise TypeNotFoundError(name=decl.name, span=decl.span)
    return pt


def _format_message(ctx: Context, msg: A.Message, scope: ProtoType | None) -> list[str]:
    pt = _own_type(ctx, msg, scope)
    nested: list[str] = []
    entries: list[str] = []
    for f in msg.fields:
        if isinstance(f, A.Message):
            nested.extend(_format_message(ctx, f, pt))
        elif isinstance(f, A.Enum):
            nested.extend(_format_enum(ctx, f, pt))
        else:
            entry = _format_field(ctx, f, pt)
            if entry is not None:
                entries.append(f"  {entry},")

    logger.debug("emitting message %s as %s", pt.full_name, pt.schema)
    return [
        *nested,
        f"export const {pt.schema} = z.object({{",
        *entries,
        "});",
        "",
        f"export type {pt.ts_name} = z.infer<typeof {pt.schema}>;",
        "",
    ]


def _format_field(ctx: Context, f: A.Field, scope: ProtoType) -> str | None:
    if isinstance(f, A.SingleField):
        return f"{snake_to_camel(f.name)}: {_flagged(_type_expr(ctx, f.type_name, scope, f), f.flag)}"
    if isinstance(f, A.MapField):
        key = _type_expr(ctx, f.key_type, scope, f)
        value = _type_expr(ctx, f.value_type, scope, f)
        return f"{snake_to_camel(f.name)}: z.record({key}, {value})"
    if isinstance(f, A.Oneof):
        return f"{snake_to_camel(f.name)}: {_format_oneof(ctx, f, scope)}"
    # reserved, extensions, options and extends produce no schema
    return None


def _format_oneof(ctx: Context, o: A.Oneof, scope: ProtoType) -> str:
    cases = [f"z.object({{ {_format_field(ctx, v, scope)} }})" for v in o.fields]
    # z.union needs at least two members
    if len(cases) == 1:
        return cases[0]
    return f"z.union([{', '.join(cases)}])"


def _format_enum(ctx: Context, enum: A.Enum, scope: ProtoType | None) -> list[str]:
    pt = _own_type(ctx, enum, scope)
    values = [v for v in enum.values if isinstance(v, A.EnumValue)]
    default = next((v.name for v in values if v.number == 0), None)
    catch = f".catch({pt.ts_name}.{default})" if default is not None else ""

    logger.debug("emitting enum %s as %s", pt.full_name, pt.schema)
    return [
        f"export enum {pt.ts_name} {{",
        *(f'  {v.name} = "{v.name}",' for v in values),
        "}",
        "",
        f"export const {pt.schema} = z.nativeEnum({pt.ts_name}){catch};",
        "",
    ]


def _type_expr(ctx: Context, type_name: str, scope: ProtoType, node: A.Node) -> str:
    builtin = _BUILTIN_EXPRS.get(type_name)
    if builtin is not None:
        return builtin
    pt = ctx.resolve(type_name, scope)
    if pt is None:
        raise TypeNotFoundError(name=type_name, span=node.span)
    return pt.schema


def _flagged(expr: str, flag: Flag) -> str:
    if flag is Flag.OPTIONAL:
        return f"z.optional({expr})"
    if flag is Flag.REPEATED:
        return f"z.array({expr})"
    return expr
