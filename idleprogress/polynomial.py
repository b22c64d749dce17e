from __future__ import annotations

import json
import logging
import math
from fractions import Fraction
from typing import TYPE_CHECKING

from idleprogress._types import FLOAT_MAX, clamp_finite, finite_or

if TYPE_CHECKING:
    from idleprogress.state import MetaState, RunState

logger = logging.getLogger(__name__)

DARK_MATTER_DIVISOR = 1e10


def _int_to_float(value: int) -> float:
    try:
        return float(value)
    except OverflowError:
        return FLOAT_MAX if value > 0 else -FLOAT_MAX


def _scaled_int(value: int, factor: float) -> int:
    """``int(value * factor)`` truncated toward zero without float overflow."""
    if value == 0 or factor == 0 or not math.isfinite(factor):
        return 0
    if factor.is_integer():
        return value * int(factor)
    return int(Fraction(value) * Fraction(factor))


class AntimatterPolynomial:
    """Integer coefficients ``a[0..n]`` with per-term float scalars ``s[0..n]``.

    Each step adds ``a[i+1] * s[i+1] * seconds`` to ``a[i]``. Conversions back
    to float saturate at the largest finite double.
    """

    def __init__(
        self,
        coefficients: list[int] | None = None,
        scalars: list[float] | None = None,
    ) -> None:
        self.coefficients: list[int] = [int(c) for c in coefficients or []]
        raw = [finite_or(s, 1.0) for s in scalars or []]
        # Scalars always track the coefficient length.
        n = len(self.coefficients)
        self.scalars: list[float] = (raw + [1.0] * n)[:n]

    def __len__(self) -> int:
        return len(self.coefficients)

    def __repr__(self) -> str:
        return f"AntimatterPolynomial({self.coefficients!r}, {self.scalars!r})"

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    def is_empty(self) -> bool:
        return not self.coefficients

    # ── Evolution ────────────────────────────────────────────────────

    def evaluate(self, seconds: int = 1, step_multiplier: float = 1.0) -> float:
        """Propagate higher terms downward, then return the per-second yield.

        Lower terms are updated first so each one reads the pre-step value
        of the term above it.
        """
        if not self.coefficients or seconds <= 0:
            return 0.0
        mult = finite_or(step_multiplier, 1.0)
        for i in range(len(self.coefficients) - 1):
            step = self.scalars[i + 1] * seconds * mult
            self.coefficients[i] += _scaled_int(
                self.coefficients[i + 1], finite_or(step, 0.0)
            )
        head = _int_to_float(self.coefficients[0])
        return clamp_finite(head * self.scalars[0] * mult)

    def set_term_scalar(self, degree: int, scalar: float) -> None:
        """Configure the scalar of *degree*, growing both arrays if needed."""
        if degree < 0:
            return
        if degree >= len(self.scalars):
            self.scalars.extend([1.0] * (degree + 1 - len(self.scalars)))
        self.scalars[degree] = finite_or(scalar, 1.0)
        if degree >= len(self.coefficients):
            self.coefficients.extend([1] * (degree + 1 - len(self.coefficients)))

    # ── Persistence ──────────────────────────────────────────────────

    def coefficients_json(self) -> str:
        return json.dumps(self.coefficients)

    def scalars_json(self) -> str:
        return json.dumps(self.scalars)

    @classmethod
    def from_json(
        cls, coefficients_blob: str | None, scalars_blob: str | None
    ) -> AntimatterPolynomial:
        """Rebuild from stored blobs; a corrupt blob loads as empty."""
        coefficients = _decode_list(coefficients_blob, "coefficients")
        scalars = _decode_list(scalars_blob, "scalars")
        try:
            ints = [int(c) for c in coefficients]
        except (TypeError, ValueError, OverflowError):
            logger.warning("Discarding malformed antimatter coefficients")
            ints = []
        try:
            floats = [float(s) for s in scalars]
        except (TypeError, ValueError):
            logger.warning("Discarding malformed antimatter scalars")
            floats = []
        return cls(ints, floats)


def _decode_list(blob: str | None, label: str) -> list:
    if not blob:
        return []
    try:
        decoded = json.loads(blob)
    except (TypeError, ValueError):
        logger.warning("Corrupt antimatter %s blob; resetting", label)
        return []
    if not isinstance(decoded, list):
        logger.warning("Antimatter %s blob is not a list; resetting", label)
        return []
    return decoded


def factorial_conversion(value: float) -> float:
    """Compress *value* roughly like an inverse factorial.

    Divides by 1, 2, 3, ... while the running value exceeds the divisor,
    counting the divisions, then adds the fractional remainder.
    """
    if math.isnan(value):
        return 0.0
    v = min(value, FLOAT_MAX)
    count = 0
    divisor = 1
    while v > divisor:
        v /= divisor
        divisor += 1
        count += 1
    return count + v / divisor


def tick_antimatter(
    run: RunState, meta: MetaState, seconds: int, step_multiplier: float = 1.0
) -> float:
    """Advance antimatter by *seconds*; returns the new per-second yield."""
    if seconds <= 0:
        return run.antimatter_per_second
    run.antimatter = clamp_finite(
        run.antimatter + run.antimatter_per_second * seconds, 0.0
    )
    run.antimatter_per_second = run.polynomial.evaluate(seconds, step_multiplier)
    gained = seconds * factorial_conversion(run.antimatter) / DARK_MATTER_DIVISOR
    meta.pending_dark_matter = clamp_finite(meta.pending_dark_matter + gained, 0.0)
    return run.antimatter_per_second
