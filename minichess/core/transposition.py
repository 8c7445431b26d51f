"""Bounded transposition table keyed by the (board, turn) serialization.

A table belongs to exactly one search invocation; ``SearchEngine`` builds a
fresh one per ``get_best_move`` call, so concurrent searches never share or
clear each other's entries.

Eviction is FIFO by insertion order: once ``capacity`` is exceeded the
oldest inserted key is dropped. Overwriting an existing key keeps its
original insertion slot.

Usage (example):

    from minichess.core.transposition import TranspositionTable, TT_EXACT

    tt = TranspositionTable(capacity=1000)
    tt.store(position, depth=3, value=1.5, flag=TT_EXACT, best_move=move)
    entry = tt.get(position)
    if entry is not None:
        print(entry.depth, entry.value, entry.flag, entry.best_move)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from minichess.core.board import Move, Position

TT_EXACT = 0
TT_LOWER = 1  # fail-high: value is a lower bound
TT_UPPER = 2  # fail-low: value is an upper bound

DEFAULT_CAPACITY = 500_000


@dataclass
class TTEntry:
    depth: int
    value: float
    flag: int
    best_move: Optional[Move]

    def __iter__(self):
        return iter((self.depth, self.value, self.flag, self.best_move))


class TranspositionTable:
    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._table: Dict[str, TTEntry] = {}
        self.hits = 0

    def __len__(self) -> int:
        return len(self._table)

    def key(self, position: Position) -> str:
        return position.key()

    def get(self, position: Position) -> Optional[TTEntry]:
        entry = self._table.get(self.key(position))
        if entry is not None:
            self.hits += 1
        return entry

    def store(self, position: Position, depth: int, value: float, flag: int,
              best_move: Optional[Move]):
        self._table[self.key(position)] = TTEntry(depth, value, flag, best_move)
        if len(self._table) > self.capacity:
            oldest = next(iter(self._table))
            del self._table[oldest]

    def clear(self):
        self._table.clear()
        self.hits = 0
