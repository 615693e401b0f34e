"""Injectable random source for spawn placement and target selection.

The engine only ever asks for two things: a uniform float in a range and a
uniformly chosen element.  Tests substitute a scripted source to make
spawns deterministic.
"""

from __future__ import annotations

import random
from typing import Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    def uniform(self, low: float, high: float) -> float: ...

    def choice(self, items: Sequence[T]) -> T: ...


class SeededRandom:
    """RandomSource backed by a private ``random.Random`` instance."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def uniform(self, low: float, high: float) -> float:
        return self._rng.uniform(low, high)

    def choice(self, items: Sequence[T]) -> T:
        return self._rng.choice(items)
