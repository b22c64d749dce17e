from __future__ import annotations

import math
from typing import TYPE_CHECKING

from idleprogress._types import clamp, clamp_finite, finite_or, safe_log
from idleprogress.modes import GameMode

if TYPE_CHECKING:
    from idleprogress.state import EngineState, MetaState, RunState

PHASE_BANDS = 9
PHASE_BONUS = 10.0
CYCLE_BASE_CLICKS = 100
CYCLE_GROWTH = 1.1
IDLE_GRACE_SECONDS = 60
MOMENTUM_WINDOW_SECONDS = 10.0
OVERALL_LOG_BASE = 1000.0


# ── Click phase ─────────────────────────────────────────────────────


def click_cycles(clicks: int) -> int:
    """Number of completed geometric click cycles (0 below 100 clicks)."""
    if clicks < CYCLE_BASE_CLICKS:
        return 0
    rate = CYCLE_GROWTH - 1.0
    return max(0, math.floor(safe_log(clicks * rate / CYCLE_BASE_CLICKS + 1, CYCLE_GROWTH)))


def _cycle_bounds(cycle: int) -> tuple[float, float]:
    rate = CYCLE_GROWTH - 1.0
    lower = CYCLE_BASE_CLICKS * (CYCLE_GROWTH ** cycle - 1) / rate
    upper = CYCLE_BASE_CLICKS * (CYCLE_GROWTH ** (cycle + 1) - 1) / rate
    return lower, upper


def click_phase(clicks: int) -> int:
    """Band 1..9 of the manual click counter within its current cycle."""
    if clicks <= 0:
        return 1
    lower, upper = _cycle_bounds(click_cycles(clicks))
    width = upper - lower
    if width <= 0:
        return 1
    phase = math.floor(PHASE_BANDS * (clicks - lower) / width) + 1
    return int(clamp(phase, 1, PHASE_BANDS))


def phase_multiplier(clicks: int) -> float:
    return PHASE_BONUS if click_phase(clicks) == PHASE_BANDS else 1.0


def manual_click_cycles(clicks: int) -> float:
    """Rebirth bonus for manual clicking: triangular number of cycles."""
    c = click_cycles(clicks)
    return c * (c + 1) / 2.0


# ── Buffs ───────────────────────────────────────────────────────────


def momentum_factor(run: RunState) -> float:
    cap = finite_or(run.momentum_cap, 0.0)
    scale = finite_or(run.momentum_scale, 0.0)
    if cap <= 0 or scale <= 0:
        return 1.0
    return 1.0 + clamp(scale * run.momentum_clicks, 0.0, cap)


def idle_click_multiplier(run: RunState, now: float) -> float:
    """Grows linearly once more than a minute has passed since the last click."""
    last = run.last_rock_click_time
    if last is None:
        return 1.0
    seconds = int(now - last)
    if seconds <= IDLE_GRACE_SECONDS:
        return 1.0
    extra = finite_or(run.idle_boost, 0.0) * (seconds - IDLE_GRACE_SECONDS)
    return max(1.0, clamp_finite(1.0 + extra))


def frenzy_active(run: RunState, now: float) -> bool:
    if not run.frenzy_active or run.frenzy_trigger_time is None:
        return False
    elapsed = now - run.frenzy_trigger_time
    return 0 <= elapsed < run.frenzy_duration


def frenzy_factor(run: RunState, now: float) -> float:
    if frenzy_active(run, now):
        return finite_or(run.frenzy_multiplier, 1.0)
    return 1.0


def frenzy_ready(run: RunState, now: float) -> bool:
    """Armed, not running, and past its cooldown."""
    if not run.frenzy_active or run.frenzy_duration <= 0:
        return False
    if run.frenzy_trigger_time is None:
        return True
    if frenzy_active(run, now):
        return False
    return now - run.frenzy_trigger_time >= run.frenzy_cooldown


def frenzy_cooldown_remaining(run: RunState, now: float) -> float:
    if run.frenzy_trigger_time is None:
        return 0.0
    return max(0.0, run.frenzy_cooldown - (now - run.frenzy_trigger_time))


# ── Global multipliers ──────────────────────────────────────────────


def hunter_multiplier(hunter_level: int) -> float:
    return float(max(1, hunter_level))


def overall_multiplier(
    meta: MetaState, rebirth_multiplier: float, mode_bonus: float = 1.0
) -> float:
    """Permanent multiplier, recomputed only when a rebirth pays out."""
    rebirth = finite_or(rebirth_multiplier, 1.0)
    achievement = finite_or(meta.achievement_multiplier, 1.0)
    best = 1.0 + safe_log(meta.max_single_run_reward, OVERALL_LOG_BASE)
    bonus = finite_or(mode_bonus, 1.0)
    return max(1.0, clamp_finite(rebirth * achievement * best * bonus))


def effective_overall(state: EngineState) -> float:
    """Overall multiplier as applied to income; mining adds the hunter bonus."""
    overall = finite_or(state.meta.overall_multiplier, 1.0)
    if state.mode is GameMode.MINING:
        overall *= hunter_multiplier(state.monster.hunter_level)
    return clamp_finite(overall)


# ── Resource rates ──────────────────────────────────────────────────


def base_combined_rate(run: RunState) -> float:
    rate = (
        finite_or(run.resource_per_second, 0.0)
        + finite_or(run.bonus_resource_per_second, 0.0)
        + finite_or(run.click_ops_coeff, 0.0)
        * (1.0 + finite_or(run.base_resource_per_click, 0.0))
    )
    return clamp_finite(rate)


def base_click_value(run: RunState) -> float:
    lifetime = max(0.0, finite_or(run.lifetime_resource, 0.0))
    value = (
        1.0
        + finite_or(run.base_resource_per_click, 0.0)
        + finite_or(run.bonus_resource_per_click, 0.0)
        + finite_or(run.rps_click_coeff, 0.0) * finite_or(run.resource_per_second, 0.0)
        + finite_or(run.lifetime_click_coeff, 0.0) * math.sqrt(lifetime)
    )
    return clamp_finite(value)


def resource_per_click(
    state: EngineState, now: float, manual_clicks: int | None = None
) -> float:
    run = state.run
    clicks = run.manual_clicks if manual_clicks is None else manual_clicks
    value = (
        base_click_value(run)
        * phase_multiplier(clicks)
        * frenzy_factor(run, now)
        * momentum_factor(run)
        * effective_overall(state)
        * finite_or(run.click_multiplicity, 1.0)
        * idle_click_multiplier(run, now)
        * max(1.0, finite_or(run.click_power, 1.0))
    )
    return clamp_finite(value)


def resource_per_second(state: EngineState, now: float) -> float:
    run = state.run
    value = (
        base_combined_rate(run)
        * frenzy_factor(run, now)
        * effective_overall(state)
        * max(1.0, finite_or(run.rps_power, 1.0))
    )
    return clamp_finite(value)
