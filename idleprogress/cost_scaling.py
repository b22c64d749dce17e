from __future__ import annotations

import math
from typing import Callable

from idleprogress._types import safe_pow

CostFn = Callable[[int, int, int], float]


def base_cost(rank: int, level: int) -> float:
    """10 ** (rank * (1 + 0.99 ** level))."""
    return safe_pow(10.0, rank * (1.0 + 0.99 ** level))


def cost_factor(level: int) -> float:
    """1 + 9 / level; a level-0 modifier cannot be bought."""
    if level <= 0:
        return math.inf
    return 1.0 + 9.0 / level


def output_per_tick(rank: int, level: int) -> float:
    """level * 10 ** (rank - 1)."""
    return level * safe_pow(10.0, rank - 1)


def experience_to_next(level: int) -> int:
    return (level + 1) ** 3


class CostScaling:
    """Determines how a modifier's price changes with rank, level and copies."""

    def __init__(self, fn: CostFn) -> None:
        self._fn = fn

    def compute(self, rank: int, level: int, copies: int) -> float:
        return self._fn(rank, level, copies)

    @classmethod
    def rank_curve(cls) -> CostScaling:
        """base_cost(rank, level) * cost_factor(level) ** copies."""

        def _compute(rank: int, level: int, copies: int) -> float:
            factor = cost_factor(level)
            if math.isinf(factor):
                return math.inf
            return base_cost(rank, level) * safe_pow(factor, copies)

        return cls(_compute)

    @classmethod
    def fixed(cls, amount: float) -> CostScaling:
        """Cost never changes."""
        return cls(lambda _rank, _level, _copies: amount)

    @classmethod
    def exponential(cls, base: float, growth_rate: float = 1.15) -> CostScaling:
        """Cost = base * growth_rate^copies."""
        b = base
        gr = growth_rate

        def _compute(_rank: int, _level: int, copies: int) -> float:
            return b * safe_pow(gr, copies)

        return cls(_compute)

    @classmethod
    def custom(cls, fn: CostFn) -> CostScaling:
        """Arbitrary cost function of (rank, level, copies)."""
        return cls(fn)
