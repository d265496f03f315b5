from pathlib import Path

import pytest

from pathminer.paths.model import Direction, LabeledPathContexts, OrientedNodeType, PathContext, PathContextId
from pathminer.storage.code2vec import Code2VecEncoder, PathBasedStorageConfig, parse_corpus_line


def _context(start: str, end: str, apex: str = "Call") -> PathContext:
    nodes = (
        OrientedNodeType("Name", Direction.UP),
        OrientedNodeType(apex, None),
        OrientedNodeType("Name", Direction.DOWN),
    )
    return PathContext(start, nodes, end)


def _example(label: str, *contexts: PathContext) -> LabeledPathContexts:
    return LabeledPathContexts(label, tuple(contexts))


def test_encode_assigns_ids_in_first_seen_order():
    encoder = Code2VecEncoder(PathBasedStorageConfig())
    assert encoder.encode(_example("f", _context("a", "b"))) == "f 1,1,2"
    assert encoder.encode(_example("g", _context("b", "c"), _context("a", "a", "Attr"))) == "g 2,1,3 1,2,1"

    vocabulary = encoder.vocabulary_snapshot()
    assert vocabulary["tokens"] == {"a": (1, 3), "b": (2, 2), "c": (3, 1)}
    assert vocabulary["paths"] == {"Name↑Call↓Name": (1, 2), "Name↑Attr↓Name": (2, 1)}


def test_max_tokens_filters_by_rank_at_encode_time():
    encoder = Code2VecEncoder(PathBasedStorageConfig(max_tokens=2))
    assert encoder.encode(_example("first", _context("a", "b"))) == "first 1,1,2"
    # c and d rank 3 and 4 when this example is encoded
    assert encoder.encode(_example("second", _context("c", "d"))) is None
    assert encoder.encode(_example("third", _context("a", "b"), _context("c", "d"))) == "third 1,1,2"


def test_max_paths_filters_rare_paths():
    encoder = Code2VecEncoder(PathBasedStorageConfig(max_paths=1))
    encoder.encode(_example("f", _context("a", "b", "Call")))
    line = encoder.encode(_example("g", _context("a", "b", "Call"), _context("a", "b", "Attr")))
    assert line == "g 1,1,2"


def test_example_without_contexts_is_dropped():
    encoder = Code2VecEncoder(PathBasedStorageConfig())
    assert encoder.encode(_example("empty")) is None


def test_labels_with_whitespace_rejected():
    encoder = Code2VecEncoder(PathBasedStorageConfig())
    with pytest.raises(ValueError):
        encoder.encode(_example("two words", _context("a", "b")))


def test_corpus_line_parses_back():
    encoder = Code2VecEncoder(PathBasedStorageConfig())
    line = encoder.encode(_example("f", _context("a", "b"), _context("b", "a")))
    parsed = parse_corpus_line(line)
    assert parsed.label == "f"
    assert parsed.path_contexts == (PathContextId(1, 1, 2), PathContextId(2, 1, 1))

    with pytest.raises(ValueError):
        parse_corpus_line("f")
    with pytest.raises(ValueError):
        parse_corpus_line("f 1,2")


def test_dump_dictionaries_in_rank_order(tmp_path: Path):
    encoder = Code2VecEncoder(PathBasedStorageConfig())
    encoder.encode(_example("f", _context("a", "b")))
    encoder.encode(_example("g", _context("c", "a", "Attr")))

    tokens_path, paths_path = encoder.dump_dictionaries(tmp_path)

    assert tokens_path.read_text(encoding="utf-8") == "1 a 2\n2 b 1\n3 c 1\n"
    assert paths_path.read_text(encoding="utf-8") == "1 Name↑Call↓Name 1\n2 Name↑Attr↓Name 1\n"
    with pytest.raises(RuntimeError):
        encoder.dump_dictionaries(tmp_path)


def test_storage_config_validation():
    with pytest.raises(ValueError):
        PathBasedStorageConfig(max_path_contexts=-1)
    with pytest.raises(ValueError):
        PathBasedStorageConfig(max_tokens=-5)
