from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Tuple

EXACT, LOWER, UPPER = 0, 1, 2


@dataclass(frozen=True)
class TTEntry:
    depth: int
    score: int
    flag: int
    best: int  # 0..63 or -1
    gen: int


class TranspositionTable:
    """Bounded hash -> search result cache.

    On overflow the shallowest entry is evicted, least recently stored first,
    so deep results survive longest. A store never replaces a deeper entry for
    the same key. At capacity 1 a shallower store is rejected rather than
    evicting the newest, deepest entry. Distinct positions sharing a 64-bit
    key are not detected; a foreign entry is used as if it were ours.
    """

    def __init__(self, capacity: int = 1_000_000) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.table: Dict[int, TTEntry] = {}
        # depth -> keys in refresh order (oldest first)
        self._buckets: Dict[int, "OrderedDict[int, None]"] = {}
        self.gen: int = 0
        self.stats = {"lookups": 0, "hits": 0, "stores": 0, "replacements": 0, "rejected": 0, "evictions": 0}

    def __len__(self) -> int:
        return len(self.table)

    def __contains__(self, key: int) -> bool:
        return key in self.table

    def new_generation(self) -> None:
        self.gen = (self.gen + 1) & 0xFF

    def probe(self, key: int) -> TTEntry | None:
        self.stats["lookups"] += 1
        e = self.table.get(key)
        if e is not None:
            self.stats["hits"] += 1
        return e

    def store(self, key: int, depth: int, score: int, flag: int, best: int) -> bool:
        """Store a result; returns False when a deeper entry already holds the key."""
        self.stats["stores"] += 1
        e = self.table.get(key)
        if e is not None:
            if depth < e.depth:
                self.stats["rejected"] += 1
                return False
            if best < 0:
                best = e.best
            self._unlink(key, e.depth)
            self.stats["replacements"] += 1
        elif len(self.table) >= self.capacity:
            victim = self._victim()
            if self.capacity == 1 and depth < self.table[victim].depth:
                # The sole entry is both the newest and the deepest
                self.stats["rejected"] += 1
                return False
            self._evict(victim)
        self.table[key] = TTEntry(depth=depth, score=score, flag=flag, best=best, gen=self.gen)
        self._buckets.setdefault(depth, OrderedDict())[key] = None
        return True

    def _unlink(self, key: int, depth: int) -> None:
        bucket = self._buckets[depth]
        del bucket[key]
        if not bucket:
            del self._buckets[depth]

    def _victim(self) -> int:
        # Oldest key in the shallowest bucket
        return next(iter(self._buckets[min(self._buckets)]))

    def _evict(self, key: int) -> None:
        self._unlink(key, self.table[key].depth)
        del self.table[key]
        self.stats["evictions"] += 1

    def entries(self) -> Iterator[Tuple[int, TTEntry]]:
        """Entries in eviction order, so reloading them keeps the same policy state."""
        for depth in sorted(self._buckets):
            for key in self._buckets[depth]:
                yield key, self.table[key]

    def load(self, items: Iterable[Tuple[int, TTEntry]]) -> int:
        n = 0
        for key, e in items:
            if self.store(key, e.depth, e.score, e.flag, e.best):
                n += 1
        return n

    def clear(self) -> None:
        self.table.clear()
        self._buckets.clear()
        self.gen = 0
