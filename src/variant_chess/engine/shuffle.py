"""Seeded, platform-independent randomness for game setup and meteor strikes.

Nothing here is persisted: the back rank and every meteor strike are
regenerated from the game's stable seed whenever a game is rebuilt for undo
or replay, so the hash and generator must never change.
"""

from __future__ import annotations

import math
from typing import Callable, List, Optional, Sequence, Tuple

from .pieces import Kind


_MASK32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def xmur3(seed: str) -> int:
    """Hash ``seed`` into a 32-bit unsigned integer.

    Characters are consumed as UTF-16 code units.
    """
    units = seed.encode("utf-16-le")
    count = len(units) // 2
    h = (1779033703 ^ count) & _MASK32
    for i in range(count):
        code = units[2 * i] | (units[2 * i + 1] << 8)
        h = _imul(h ^ code, 3432918353)
        h = ((h << 13) | (h >> 19)) & _MASK32
    h = _imul(h ^ (h >> 16), 2246822507) ^ _imul(h ^ (h >> 13), 3266489909)
    return h & _MASK32


def mulberry32(state: int) -> Callable[[], float]:
    """Return a generator of floats in ``[0, 1)`` seeded with ``state``."""
    t = state & _MASK32

    def _next() -> float:
        nonlocal t
        t = (t + 0x6D2B79F5) & _MASK32
        r = _imul(t ^ (t >> 15), 1 | t)
        r = (r ^ ((r + _imul(r ^ (r >> 7), 61 | r)) & _MASK32)) & _MASK32
        return ((r ^ (r >> 14)) & _MASK32) / 4294967296.0

    return _next


def rng_for(seed: str) -> Callable[[], float]:
    return mulberry32(xmur3(seed))


def _pick(rand: Callable[[], float], pool: List[int]) -> int:
    return pool.pop(math.floor(rand() * len(pool)))


def fischer_back_rank(seed: str) -> Tuple[Kind, ...]:
    """Generate a randomized back rank as a pure function of ``seed``.

    Bishops go on one even and one odd file (opposite square colors), then
    the queen and both knights on random remaining files, and the last three
    files take rook, king, rook in file order so the king always sits between
    the rooks.
    """
    rand = rng_for(seed)
    positions: List[Optional[Kind]] = [None] * 8
    remaining = list(range(8))

    b1 = _pick(rand, [0, 2, 4, 6])
    remaining.remove(b1)
    positions[b1] = Kind.BISHOP
    b2 = _pick(rand, [1, 3, 5, 7])
    remaining.remove(b2)
    positions[b2] = Kind.BISHOP

    positions[_pick(rand, remaining)] = Kind.QUEEN
    positions[_pick(rand, remaining)] = Kind.KNIGHT
    positions[_pick(rand, remaining)] = Kind.KNIGHT

    left_rook, king, right_rook = sorted(remaining)
    positions[left_rook] = Kind.ROOK
    positions[king] = Kind.KING
    positions[right_rook] = Kind.ROOK
    return tuple(k for k in positions if k is not None)


def choose(seed: str, options: Sequence[int]) -> Optional[int]:
    """Pick one of ``options`` uniformly and deterministically from ``seed``."""
    if not options:
        return None
    rand = rng_for(seed)
    return options[math.floor(rand() * len(options))]
