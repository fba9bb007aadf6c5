from __future__ import annotations

from .corpus import CorpusCase, generate_corpus, generate_corpus_files, generate_proto_sources

__all__ = ["CorpusCase", "generate_corpus", "generate_corpus_files", "generate_proto_sources"]
