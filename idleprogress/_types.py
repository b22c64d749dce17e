from __future__ import annotations

import math
import sys
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from idleprogress.state import EngineState

ProgressFn = Callable[['EngineState'], float]
LevelValue = float | Callable[[int, int], float]

FLOAT_MAX = sys.float_info.max


def finite_or(value: float, default: float) -> float:
    """Return *value* if it is a finite number, else *default*."""
    try:
        v = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isfinite(v):
        return v
    return default


def clamp(value: float, lo: float, hi: float) -> float:
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def clamp_finite(value: float, lo: float = -FLOAT_MAX, hi: float = FLOAT_MAX) -> float:
    """Clamp to a finite range. NaN collapses to *lo* when lo >= 0, else 0."""
    if math.isnan(value):
        return lo if lo >= 0 else 0.0
    return clamp(value, lo, hi)


def safe_log(value: float, base: float | None = None) -> float:
    """Logarithm that treats non-positive or non-finite input as 1 (log = 0)."""
    if not math.isfinite(value) or value <= 0:
        return 0.0
    if base is None:
        return math.log(value)
    if not math.isfinite(base) or base <= 0 or base == 1:
        return 0.0
    return math.log(value) / math.log(base)


def safe_pow(base: float, exponent: float) -> float:
    """``base ** exponent`` saturating at the largest finite float."""
    try:
        result = math.pow(base, exponent)
    except OverflowError:
        return FLOAT_MAX
    except ValueError:
        return 1.0
    if math.isnan(result):
        return 1.0
    if math.isinf(result):
        return FLOAT_MAX
    return result


def int_cbrt(value: float) -> int:
    """Floor of the cube root, exact at perfect cubes."""
    if not math.isfinite(value):
        value = FLOAT_MAX if value > 0 else 0.0
    if value < 1:
        return 0
    r = int(round(value ** (1.0 / 3.0)))
    while r > 0 and r ** 3 > value:
        r -= 1
    while (r + 1) ** 3 <= value:
        r += 1
    return r


def resolve_level_value(value: LevelValue, level: int, copies: int) -> float:
    """Resolve a literal float or a callable taking (level, copies)."""
    if callable(value):
        return value(level, copies)
    return value
