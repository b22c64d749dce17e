from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from idleprogress._types import clamp_finite, int_cbrt
from idleprogress.modes import GameMode
from idleprogress.multipliers import manual_click_cycles, overall_multiplier
from idleprogress.state import RunState

if TYPE_CHECKING:
    from idleprogress.state import EngineState, MetaState

logger = logging.getLogger(__name__)


def mining_reward(run: RunState) -> float:
    """Currency paid for ending a mining run now."""
    return float(int_cbrt(run.lifetime_resource)) + manual_click_cycles(run.manual_clicks)


@dataclass(frozen=True)
class RebirthPreview:
    mode: GameMode
    next_mode: GameMode
    reward: float
    dark_matter: float
    manual_click_cycles: float


@dataclass(frozen=True)
class RebirthResult:
    """Outcome of a completed rebirth."""

    previous_mode: GameMode
    next_mode: GameMode
    reward: float
    dark_matter_gained: float
    manual_click_cycles: float
    overall_multiplier: float
    rebirth_count: int


class RebirthController:
    """Computes rebirth rewards and swaps in the next run."""

    def __init__(self, mode_bonus: float = 1.0) -> None:
        self.mode_bonus = mode_bonus

    def preview(self, state: EngineState) -> RebirthPreview:
        """What a rebirth would pay right now. Does not mutate *state*."""
        run = state.run
        reward = mining_reward(run) if state.mode is GameMode.MINING else 0.0
        dark = state.meta.pending_dark_matter if state.mode is GameMode.ANTIMATTER else 0.0
        return RebirthPreview(
            mode=state.mode,
            next_mode=state.meta.next_mode,
            reward=reward,
            dark_matter=dark,
            manual_click_cycles=manual_click_cycles(run.manual_clicks),
        )

    def transition(self, state: EngineState, now: float | None = None) -> RebirthResult:
        """Finish the run and start a fresh one in ``meta.next_mode``.

        Every new value is computed before *state* is touched, so the swap
        at the end is all-or-nothing.
        """
        preview = self.preview(state)
        new_meta = self._next_meta(state.meta, state.run, preview)
        new_run = RunState.fresh(preview.next_mode)
        new_run.last_active_time = now if now is not None else state.run.last_active_time

        state.meta = new_meta
        state.run = new_run
        state.mode = preview.next_mode

        result = RebirthResult(
            previous_mode=preview.mode,
            next_mode=preview.next_mode,
            reward=preview.reward,
            dark_matter_gained=preview.dark_matter,
            manual_click_cycles=preview.manual_click_cycles,
            overall_multiplier=new_meta.overall_multiplier,
            rebirth_count=new_meta.rebirth_count,
        )
        logger.info(
            "Rebirth %s -> %s: reward=%s dark_matter=%s overall=%.4g",
            result.previous_mode.value,
            result.next_mode.value,
            result.reward,
            result.dark_matter_gained,
            result.overall_multiplier,
        )
        return result

    def _next_meta(
        self, meta: MetaState, run: RunState, preview: RebirthPreview
    ) -> MetaState:
        new_meta = replace(
            meta,
            total_manual_click_cycles=meta.total_manual_click_cycles
            + preview.manual_click_cycles,
        )
        if preview.mode is GameMode.MINING and preview.reward > 0:
            new_meta.currency = clamp_finite(meta.currency + preview.reward)
            new_meta.lifetime_currency = clamp_finite(meta.lifetime_currency + preview.reward)
            new_meta.rebirth_count = meta.rebirth_count + 1
            new_meta.max_single_run_reward = max(meta.max_single_run_reward, preview.reward)
            new_meta.overall_multiplier = overall_multiplier(
                new_meta, run.rebirth_multiplier, self.mode_bonus
            )
        elif preview.mode is GameMode.ANTIMATTER and preview.dark_matter > 0:
            new_meta.dark_matter = clamp_finite(meta.dark_matter + preview.dark_matter)
            new_meta.pending_dark_matter = 0.0
        return new_meta
