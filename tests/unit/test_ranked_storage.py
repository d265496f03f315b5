import random

import pytest

from pathminer.errors import InvalidKeyError
from pathminer.storage.ranked import RankedIncrementalIdStorage


def _expected_ranks(counts: dict[int, int]) -> dict[int, int]:
    order = sorted(counts, key=lambda key_id: (-counts[key_id], key_id))
    return {key_id: position for position, key_id in enumerate(order, start=1)}


def test_ids_follow_first_seen_order():
    storage = RankedIncrementalIdStorage()
    assert storage.record("a") == 1
    assert storage.record("b") == 2
    assert storage.record("a") == 1
    assert storage.get_key(2) == "b"
    assert storage.get_count("a") == 2
    assert len(storage) == 2
    assert "a" in storage and "z" not in storage


def test_ranks_break_ties_by_id():
    storage = RankedIncrementalIdStorage()
    for key in ["a"] * 5 + ["b"] * 5 + ["c"] * 3:
        storage.record(key)
    assert [storage.rank(i) for i in (1, 2, 3)] == [1, 2, 3]

    for _ in range(3):
        storage.record("c")
    assert storage.get_key_rank("c") == 1
    assert storage.get_key_rank("a") == 2
    assert storage.get_key_rank("b") == 3


def test_ranks_match_sorting_after_every_record():
    rng = random.Random(7)
    storage = RankedIncrementalIdStorage()
    counts: dict[int, int] = {}
    for _ in range(600):
        key = f"k{int(rng.paretovariate(1.2)) % 40}"
        key_id = storage.record(key)
        counts[key_id] = counts.get(key_id, 0) + 1
        expected = _expected_ranks(counts)
        assert storage.rank(key_id) == expected[key_id]
    expected = _expected_ranks(counts)
    assert all(storage.rank(key_id) == rank for key_id, rank in expected.items())


def test_ranked_items_in_rank_order():
    storage = RankedIncrementalIdStorage()
    for key in "abcbcc":
        storage.record(key)
    items = list(storage.ranked_items())
    assert [(e.key, e.id, e.count, e.rank) for e in items] == [
        ("c", 3, 3, 1),
        ("b", 2, 2, 2),
        ("a", 1, 1, 3),
    ]


def test_counts_beyond_initial_index_capacity():
    storage = RankedIncrementalIdStorage()
    storage.record("rare")
    for _ in range(300):
        storage.record("hot")
    storage.record("warm")
    storage.record("warm")
    assert storage.get_key_rank("hot") == 1
    assert storage.get_key_rank("warm") == 2
    assert storage.get_key_rank("rare") == 3
    assert storage.get_count("hot") == 300


def test_unknown_keys_and_ids_raise():
    storage = RankedIncrementalIdStorage()
    storage.record("a")
    with pytest.raises(InvalidKeyError):
        storage.get_id("missing")
    with pytest.raises(InvalidKeyError):
        storage.rank(0)
    with pytest.raises(InvalidKeyError):
        storage.rank(2)
    with pytest.raises(KeyError):
        storage.get_key(5)
