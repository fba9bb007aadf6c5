from __future__ import annotations

import logging

import pytest

from protots import Context, ProtoType, parse_source


SRC = """syntax = "proto3";
message A {
  message B {
    message C {}
    enum D { D0 = 0; }
  }
  oneof o { string s = 1; }
}
enum E { E0 = 0; }
service S { rpc R(A) returns (A); }
"""


def test_build_collects_every_declaration() -> None:
    ctx = Context.build(parse_source(SRC))
    assert set(ctx.types) == {"A", "A.B", "A.B.C", "A.B.D", "E"}
    assert ctx.types["A.B.C"] == ProtoType(full_name="A.B.C", ts_name="A_B_C", schema="A_B_CSchema")
    assert ctx.types["E"] == ProtoType(full_name="E", ts_name="E", schema="ESchema")


def test_scoped_names() -> None:
    pt = ProtoType.scoped("Leaf", ("Root", "Mid"))
    assert (pt.full_name, pt.ts_name, pt.schema) == ("Root.Mid.Leaf", "Root_Mid_Leaf", "Root_Mid_LeafSchema")
    assert ProtoType.scoped("Top") == ProtoType(full_name="Top", ts_name="Top", schema="TopSchema")


def test_types_are_read_only() -> None:
    ctx = Context.build(parse_source(SRC))
    with pytest.raises(TypeError):
        ctx.types["X"] = ProtoType.scoped("X")  # type: ignore[index]


def test_resolve_verbatim_then_one_scope_level() -> None:
    ctx = Context.build(parse_source(SRC))
    a, ab = ctx.types["A"], ctx.types["A.B"]

    assert ctx.resolve("A.B.C") == ctx.types["A.B.C"]
    assert ctx.resolve("E", ab) == ctx.types["E"]
    assert ctx.resolve("B", a) == ab
    assert ctx.resolve("C", ab) == ctx.types["A.B.C"]
    # grandchildren and siblings of the scope are out of reach
    assert ctx.resolve("C", a) is None
    assert ctx.resolve("B", ab) is None
    assert ctx.resolve("B") is None


def test_resolve_prefers_verbatim_match() -> None:
    ctx = Context.build(parse_source('syntax = "proto3"; message X {} message Y { message X {} }'))
    assert ctx.resolve("X", ctx.types["Y"]) == ctx.types["X"]


def test_declared_is_exact() -> None:
    ctx = Context.build(parse_source(SRC))
    assert ctx.declared("A") == ctx.types["A"]
    assert ctx.declared("B", ctx.types["A"]) == ctx.types["A.B"]
    assert ctx.declared("E", ctx.types["A"]) is None
    assert ctx.declared("B") is None


def test_duplicate_full_name_last_wins_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    pf = parse_source('syntax = "proto3"; message A {} enum A { Z = 0; }', file="dup.proto")
    with caplog.at_level(logging.WARNING, logger="protots.context"):
        ctx = Context.build(pf)
    assert list(ctx.types) == ["A"]
    assert "duplicate declaration of A" in caplog.text
    assert "dup.proto" in caplog.text


def test_empty_file_builds_empty_context() -> None:
    assert dict(Context.build(parse_source('syntax = "proto3";')).types) == {}
