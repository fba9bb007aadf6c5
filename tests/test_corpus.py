from __future__ import annotations

import os
from pathlib import Path

from protots import Context, compile_file, parse_source, to_schema
from protots.testing import generate_corpus, generate_corpus_files, generate_proto_sources


def test_generated_corpus_compiles() -> None:
    seed = int(os.environ.get("PROTOTS_CORPUS_SEED", "1"))
    count = int(os.environ.get("PROTOTS_CORPUS_CASES", "500"))

    for case in generate_corpus(seed=seed, count=count):
        pf = parse_source(case.source, file=f"corpus:{seed}:{case.name}")
        ctx = Context.build(pf)
        assert set(ctx.types) == set(case.declared), case.source

        out = to_schema(pf)
        for full_name in case.declared:
            assert out.count(f"export const {ctx.types[full_name].schema} = ") == 1, case.source


def test_corpus_is_deterministic() -> None:
    a = generate_proto_sources(seed=7, count=20)
    b = generate_proto_sources(seed=7, count=20)
    assert a == b
    assert a != generate_proto_sources(seed=8, count=20)


def test_generated_corpus_on_disk(tmp_path: Path) -> None:
    files = generate_corpus_files(seed=3, count=50)
    assert [rel for rel, _ in files][:2] == ["case_000000.proto", "case_000001.proto"]
    for rel, src in files:
        p = tmp_path / rel
        p.write_text(src, encoding="utf-8")
        out = compile_file(p)
        assert out.startswith(f"//\n// Code generated by protots - DO NOT EDIT\n// Source: {p}\n//\n")
