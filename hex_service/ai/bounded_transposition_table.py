"""Bounded memo table with LRU eviction for the alpha-beta search."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Hashable
from dataclasses import dataclass

# Entry flags, relative to the (alpha, beta) window the entry was searched with
EXACT = "exact"
LOWERBOUND = "lowerbound"
UPPERBOUND = "upperbound"


@dataclass(slots=True)
class MemoEntry:
    """Result of searching one position to ``depth`` remaining plies."""

    score: float
    depth: int
    flag: str
    move: int | None = None


class BoundedTranspositionTable:
    """LRU-evicting memo table keyed by a canonical position encoding.

    An entry is only reusable for a query whose remaining depth is no
    greater than the depth it was computed at; a shallower result never
    replaces a deeper one.
    """

    def __init__(self, max_entries: int = 200_000) -> None:
        self._table: OrderedDict[Hashable, MemoEntry] = OrderedDict()
        self.max_entries = max_entries
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def probe(self, key: Hashable, depth: int) -> MemoEntry | None:
        """Return the entry for ``key`` if it was searched at least ``depth`` deep."""
        entry = self._table.get(key)
        if entry is None or entry.depth < depth:
            self.misses += 1
            return None
        self._table.move_to_end(key)
        self.hits += 1
        return entry

    def store(self, key: Hashable, entry: MemoEntry) -> None:
        """Add an entry, keeping any deeper result already stored."""
        existing = self._table.get(key)
        if existing is not None:
            self._table.move_to_end(key)
            if existing.depth > entry.depth:
                return
        elif len(self._table) >= self.max_entries:
            self._table.popitem(last=False)
            self.evictions += 1
        self._table[key] = entry

    def __contains__(self, key: Hashable) -> bool:
        return key in self._table

    def __len__(self) -> int:
        return len(self._table)

    def clear(self) -> None:
        """Clear all entries and reset stats."""
        self._table.clear()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def stats(self) -> dict:
        total_lookups = self.hits + self.misses
        return {
            "entries": len(self._table),
            "max_entries": self.max_entries,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": self.hits / total_lookups if total_lookups > 0 else 0.0,
        }
