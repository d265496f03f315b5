"""Incremental key→id assignment with frequency ranks."""

from __future__ import annotations

from bisect import bisect_left, insort
from dataclasses import dataclass
from typing import Generic, Hashable, Iterator, TypeVar

from pathminer.errors import InvalidKeyError

K = TypeVar("K", bound=Hashable)


class _CountIndex:
    """Fenwick tree over occurrence counts: how many keys have count <= c."""

    def __init__(self, capacity: int = 64) -> None:
        self._tree = [0] * (capacity + 1)

    @property
    def capacity(self) -> int:
        return len(self._tree) - 1

    def add(self, count: int, delta: int) -> None:
        index = count
        while index < len(self._tree):
            self._tree[index] += delta
            index += index & -index

    def at_most(self, count: int) -> int:
        total = 0
        index = min(count, self.capacity)
        while index > 0:
            total += self._tree[index]
            index -= index & -index
        return total

    def rebuild(self, capacity: int, sizes: dict[int, int]) -> None:
        self._tree = [0] * (capacity + 1)
        for count, size in sizes.items():
            if size:
                self.add(count, size)


@dataclass(frozen=True)
class RankedEntry(Generic[K]):
    key: K
    id: int
    count: int
    rank: int


class RankedIncrementalIdStorage(Generic[K]):
    """Ids in first-seen order (starting at 1) plus descending-count ranks.

    ``rank(id)`` equals the position of the id after sorting all keys by
    ``(-count, id)``. It is answered from an order statistic kept up to date by
    ``record``: a Fenwick tree counting keys per occurrence count, and for every
    count the sorted ids that currently have it. ``record`` costs
    ``O(log n + bucket)`` and ``rank`` ``O(log n)``.

    Not thread-safe; callers serialize access.
    """

    def __init__(self) -> None:
        self._ids: dict[K, int] = {}
        self._keys: list[K] = []
        self._counts: list[int] = []
        self._buckets: dict[int, list[int]] = {}
        self._index = _CountIndex()

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._ids

    def record(self, key: K) -> int:
        key_id = self._ids.get(key)
        if key_id is None:
            self._keys.append(key)
            self._counts.append(0)
            key_id = len(self._keys)
            self._ids[key] = key_id
        else:
            self._leave_bucket(key_id)
        self._counts[key_id - 1] += 1
        self._enter_bucket(key_id)
        return key_id

    def get_id(self, key: K) -> int:
        try:
            return self._ids[key]
        except KeyError:
            raise InvalidKeyError(f"Key was never recorded: {key!r}") from None

    def get_key(self, key_id: int) -> K:
        self._check_id(key_id)
        return self._keys[key_id - 1]

    def get_count(self, key: K) -> int:
        return self._counts[self.get_id(key) - 1]

    def rank(self, key_id: int) -> int:
        self._check_id(key_id)
        count = self._counts[key_id - 1]
        higher = len(self._keys) - self._index.at_most(count)
        tied_before = bisect_left(self._buckets[count], key_id)
        return higher + tied_before + 1

    def get_key_rank(self, key: K) -> int:
        return self.rank(self.get_id(key))

    def ranked_items(self) -> Iterator[RankedEntry[K]]:
        """Entries in rank order (descending count, then ascending id)."""
        position = 0
        for count in sorted(self._buckets, reverse=True):
            for key_id in self._buckets[count]:
                position += 1
                yield RankedEntry(self._keys[key_id - 1], key_id, count, position)

    def _check_id(self, key_id: int) -> None:
        if not isinstance(key_id, int) or not 1 <= key_id <= len(self._keys):
            raise InvalidKeyError(f"Id was never issued: {key_id!r}")

    def _leave_bucket(self, key_id: int) -> None:
        count = self._counts[key_id - 1]
        bucket = self._buckets[count]
        del bucket[bisect_left(bucket, key_id)]
        if not bucket:
            del self._buckets[count]
        self._index.add(count, -1)

    def _enter_bucket(self, key_id: int) -> None:
        count = self._counts[key_id - 1]
        if count > self._index.capacity:
            sizes = {c: len(ids) for c, ids in self._buckets.items()}
            self._index.rebuild(max(count, self._index.capacity * 2), sizes)
        bucket = self._buckets.setdefault(count, [])
        insort(bucket, key_id)
        self._index.add(count, 1)
