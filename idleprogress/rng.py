from __future__ import annotations

import random
from abc import ABC, abstractmethod


class RandomSource(ABC):
    """Randomness consumed by spawn rolls and monster generation."""

    @abstractmethod
    def uniform(self) -> float:
        """Return a float in [0, 1)."""
        ...

    @abstractmethod
    def gaussian(self, mean: float, stddev: float) -> float: ...

    def choice_index(self, n: int) -> int:
        if n <= 1:
            return 0
        return min(n - 1, int(self.uniform() * n))


class SeededRandom(RandomSource):
    """RandomSource backed by ``random.Random``."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def uniform(self) -> float:
        return self._rng.random()

    def gaussian(self, mean: float, stddev: float) -> float:
        return self._rng.gauss(mean, stddev)


class ScriptedRandom(RandomSource):
    """Replays fixed sequences; for tests and deterministic tooling."""

    def __init__(
        self,
        uniforms: list[float] | None = None,
        gaussians: list[float] | None = None,
    ) -> None:
        self._uniforms = list(uniforms or [])
        self._gaussians = list(gaussians or [])
        self._u = 0
        self._g = 0

    def uniform(self) -> float:
        if not self._uniforms:
            return 0.0
        value = self._uniforms[self._u % len(self._uniforms)]
        self._u += 1
        return value

    def gaussian(self, mean: float, stddev: float) -> float:
        if not self._gaussians:
            return mean
        value = self._gaussians[self._g % len(self._gaussians)]
        self._g += 1
        return value
