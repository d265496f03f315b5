"""Vocabulary tables, corpus encoding and output streams."""

from pathminer.storage.code2vec import (
    Code2VecEncoder,
    PathBasedStorageConfig,
    format_corpus_line,
    parse_corpus_line,
)
from pathminer.storage.ranked import RankedEntry, RankedIncrementalIdStorage
from pathminer.storage.writers import CorpusWriter

__all__ = [
    "Code2VecEncoder",
    "CorpusWriter",
    "PathBasedStorageConfig",
    "RankedEntry",
    "RankedIncrementalIdStorage",
    "format_corpus_line",
    "parse_corpus_line",
]
