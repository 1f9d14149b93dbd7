from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from column_advisor.errors import DegenerateNeighborError

Order = Tuple[int, ...]

# cumulative upper bounds of the move buckets over seed in [0, 100)
MOVE_BUCKETS = [
    (5, "full_shuffle"),
    (20, "range_shuffle"),
    (40, "swap"),
    (60, "insert_before"),
    (80, "insert_after"),
    (95, "range_reverse"),
    (100, "full_reverse"),
]
_BOUNDS = [b for b, _ in MOVE_BUCKETS]


def full_shuffle(order: Sequence[int], rng: np.random.Generator) -> Order:
    return tuple(int(order[i]) for i in rng.permutation(len(order)))


def range_shuffle(order: Sequence[int], start: int, length: int, rng: np.random.Generator) -> Order:
    out = list(order)
    block = out[start:start + length]
    out[start:start + length] = [block[i] for i in rng.permutation(len(block))]
    return tuple(out)


def swap(order: Sequence[int], i: int, j: int) -> Order:
    out = list(order)
    out[i], out[j] = out[j], out[i]
    return tuple(out)


def insert_before(order: Sequence[int], pos0: int, pos1: int) -> Order:
    """Move the element at ``pos1`` to immediately before the element at ``pos0``."""
    out = list(order)
    anchor = out[pos0]
    moved = out.pop(pos1)
    out.insert(out.index(anchor), moved)
    return tuple(out)


def insert_after(order: Sequence[int], pos0: int, pos1: int) -> Order:
    """Move the element at ``pos1`` to immediately after the element at ``pos0``."""
    out = list(order)
    anchor = out[pos0]
    moved = out.pop(pos1)
    out.insert(out.index(anchor) + 1, moved)
    return tuple(out)


def range_reverse(order: Sequence[int], start: int, length: int) -> Order:
    out = list(order)
    out[start:start + length] = out[start:start + length][::-1]
    return tuple(out)


def full_reverse(order: Sequence[int]) -> Order:
    return tuple(order)[::-1]


@dataclass(frozen=True)
class Move:
    kind: str
    pos0: int
    pos1: int
    length: int

    def apply(self, order: Sequence[int], rng: np.random.Generator) -> Order:
        if self.kind == "full_shuffle":
            return full_shuffle(order, rng)
        if self.kind == "range_shuffle":
            return range_shuffle(order, self.pos0, self.length, rng)
        if self.kind == "swap":
            return swap(order, self.pos0, self.pos1)
        if self.kind == "insert_before":
            return insert_before(order, self.pos0, self.pos1)
        if self.kind == "insert_after":
            return insert_after(order, self.pos0, self.pos1)
        if self.kind == "range_reverse":
            return range_reverse(order, self.pos0, self.length)
        if self.kind == "full_reverse":
            return full_reverse(order)
        raise ValueError(f"unknown move '{self.kind}'")


def move_for_seed(seed: int) -> str:
    if not 0 <= seed < 100:
        raise ValueError(f"move seed must be in [0, 100), got {seed}")
    return MOVE_BUCKETS[bisect_right(_BOUNDS, seed)][1]


def draw_move(n: int, rng: np.random.Generator) -> Move:
    if n <= 1:
        raise DegenerateNeighborError(f"no distinct neighbour exists for {n} column(s)")
    pos0 = pos1 = 0
    while pos0 == pos1:
        pos0 = int(rng.integers(0, n))
        pos1 = int(rng.integers(0, n))
    length = int(rng.integers(1, n - pos0 + 1))
    seed = int(rng.integers(0, 100))
    return Move(move_for_seed(seed), pos0, pos1, length)


def neighbor(order: Sequence[int], rng: np.random.Generator, max_retries: int = 1000) -> Order:
    """Return a permutation one random move away from ``order`` and different from it.

    Some draws are no-ops (a one-element range, or an insert that lands where
    the element already is); those are redrawn up to ``max_retries`` times.
    """
    base = tuple(int(c) for c in order)
    n = len(base)
    if n <= 1:
        raise DegenerateNeighborError(f"no distinct neighbour exists for {n} column(s)")
    for _ in range(max_retries):
        cand = draw_move(n, rng).apply(base, rng)
        if cand != base:
            return cand
    raise DegenerateNeighborError(f"no distinct neighbour of {base} after {max_retries} draws")
