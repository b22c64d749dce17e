from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from idleprogress._types import clamp_finite, finite_or
from idleprogress.aging import AgingChannel, AgingPowerTracker
from idleprogress.modes import GameMode
from idleprogress.multipliers import (
    MOMENTUM_WINDOW_SECONDS,
    base_combined_rate,
    effective_overall,
    hunter_multiplier,
)
from idleprogress.polynomial import tick_antimatter

if TYPE_CHECKING:
    from idleprogress.monster import MonsterCombatResolver, MonsterReward
    from idleprogress.state import EngineState, RunState

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 60
BONUS_SPAWN_LIFETIME = 10.0


@dataclass(frozen=True)
class FrenzyWindow:
    """Ticks ``first..last`` (1-based, inclusive) of an interval run under frenzy."""

    first: int
    last: int

    @property
    def seconds(self) -> int:
        return max(0, self.last - self.first + 1)

    @classmethod
    def empty(cls) -> FrenzyWindow:
        return cls(1, 0)

    @classmethod
    def overlap(cls, run: RunState, start: float, seconds: int) -> FrenzyWindow:
        """Ticks k in 1..seconds with ``trigger <= start + k < trigger + duration``."""
        trigger = run.frenzy_trigger_time
        if not run.frenzy_active or trigger is None or run.frenzy_duration <= 0:
            return cls.empty()
        first = max(1, math.ceil(trigger - start))
        last = min(seconds, math.ceil(trigger + run.frenzy_duration - start) - 1)
        if last < first:
            return cls.empty()
        return cls(first, last)


@dataclass(frozen=True)
class CatchupResult:
    seconds: int = 0
    resource_gained: float = 0.0
    currency_gained: float = 0.0
    normal_seconds: int = 0
    frenzy_seconds: int = 0
    dark_matter_gained: float = 0.0
    rewards: tuple[MonsterReward, ...] = field(default_factory=tuple)

    @property
    def applied(self) -> bool:
        return self.seconds > 0

    @property
    def kills(self) -> int:
        return len(self.rewards)


class OfflineCatchupIntegrator:
    """Applies elapsed seconds to an EngineState in O(1) for the resource modes.

    Integrating N seconds matches N calls to ``TickScheduler.advance`` at
    ``now - N + 1, ..., now``.
    """

    def __init__(
        self,
        resolver: MonsterCombatResolver | None = None,
        threshold: int = DEFAULT_THRESHOLD,
    ) -> None:
        self.resolver = resolver
        self.threshold = threshold

    def integrate(
        self,
        state: EngineState,
        seconds: int,
        now: float,
        synthetic: bool = False,
    ) -> CatchupResult:
        """Apply *seconds* of progress ending at *now*.

        Real gaps at or below the threshold are ignored; synthetic grants
        (modifier effects, bonus ticks) always apply.
        """
        n = int(seconds)
        if n <= 0 or (not synthetic and n <= self.threshold):
            return CatchupResult()

        run = state.run
        start = now - n
        if run.last_click_time is not None and now - run.last_click_time > MOMENTUM_WINDOW_SECONDS:
            run.momentum_clicks = 0

        tracker = AgingPowerTracker(run)
        window = FrenzyWindow.overlap(run, start, n)

        currency = tracker.sum_over(AgingChannel.CURRENCY, n)
        if currency > 0:
            state.meta.currency = clamp_finite(state.meta.currency + currency)

        gained = 0.0
        if state.mode is not GameMode.MONSTER:
            gained = self._resource_gain(state, tracker, window, n)
            run.resource = clamp_finite(run.resource + gained)
            run.lifetime_resource = clamp_finite(run.lifetime_resource + gained)

        tracker.advance_by(n)
        run.tick_number += n

        dark = 0.0
        if state.mode is GameMode.ANTIMATTER:
            before = state.meta.pending_dark_matter
            tick_antimatter(
                run, state.meta, n, hunter_multiplier(state.monster.hunter_level)
            )
            dark = state.meta.pending_dark_matter - before

        rewards: tuple[MonsterReward, ...] = ()
        if state.mode is GameMode.MONSTER and self.resolver is not None:
            rewards = tuple(self.resolver.resolve(state.monster, state.meta, n).rewards)

        run.bonus_spawns = [
            b for b in run.bonus_spawns if now - b.spawn_time < BONUS_SPAWN_LIFETIME
        ]
        run.last_active_time = now

        result = CatchupResult(
            seconds=n,
            resource_gained=gained,
            currency_gained=currency,
            normal_seconds=n - window.seconds,
            frenzy_seconds=window.seconds,
            dark_matter_gained=dark,
            rewards=rewards,
        )
        log = logger.debug if synthetic else logger.info
        log(
            "Caught up %ds (%d under frenzy): resource=%.4g currency=%.4g kills=%d",
            n, window.seconds, gained, currency, result.kills,
        )
        return result

    def _resource_gain(
        self,
        state: EngineState,
        tracker: AgingPowerTracker,
        window: FrenzyWindow,
        n: int,
    ) -> float:
        rate = base_combined_rate(state.run) * effective_overall(state)
        if rate <= 0:
            return 0.0
        before = window.first - 1 if window.seconds else n
        during = window.seconds
        after = n - before - during

        normal = tracker.sum_over(AgingChannel.RPS, before)
        frenzy = tracker.sum_over(AgingChannel.RPS, during, offset=before)
        normal += tracker.sum_over(AgingChannel.RPS, after, offset=before + during)

        mult = finite_or(state.run.frenzy_multiplier, 1.0)
        return clamp_finite(rate * (normal + mult * frenzy))
