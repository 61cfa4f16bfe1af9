"""
Injectable randomness.

Every stochastic engine draws from a RandomSource handed in at construction,
so a seeded source replays a quarter bit for bit.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

import numpy as np

T = TypeVar("T")


class RandomSource(Protocol):
    def random(self) -> float:
        """Uniform float in [0, 1)."""
        ...

    def integers(self, low: int, high: int) -> int:
        """Uniform int in [low, high)."""
        ...

    def choice(self, items: Sequence[T]) -> T: ...


class NumpyRandomSource:
    """RandomSource backed by numpy's PCG64 generator."""

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    @property
    def generator(self) -> np.random.Generator:
        return self._rng

    def random(self) -> float:
        return float(self._rng.random())

    def integers(self, low: int, high: int) -> int:
        return int(self._rng.integers(low, high))

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot choose from an empty sequence")
        return items[int(self._rng.integers(0, len(items)))]


class SequenceRandomSource:
    """
    Replays a fixed list of uniform draws, cycling when exhausted.

    integers() and choice() derive from the same stream so every draw is
    scripted by the values passed in.
    """

    def __init__(self, values: Iterable[float]) -> None:
        self.values = [float(v) for v in values]
        if not self.values:
            raise ValueError("SequenceRandomSource needs at least one value")
        if any(not 0.0 <= v < 1.0 for v in self.values):
            raise ValueError("Scripted draws must lie in [0, 1)")
        self._pos = 0

    def random(self) -> float:
        value = self.values[self._pos % len(self.values)]
        self._pos += 1
        return value

    def integers(self, low: int, high: int) -> int:
        return low + int(self.random() * (high - low))

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot choose from an empty sequence")
        return items[int(self.random() * len(items))]
