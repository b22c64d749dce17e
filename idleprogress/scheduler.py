from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from idleprogress._types import clamp, clamp_finite
from idleprogress.aging import AgingPowerTracker
from idleprogress.catchup import BONUS_SPAWN_LIFETIME, CatchupResult
from idleprogress.modes import GameMode
from idleprogress.multipliers import (
    MOMENTUM_WINDOW_SECONDS,
    hunter_multiplier,
    resource_per_second,
)
from idleprogress.polynomial import tick_antimatter
from idleprogress.state import BonusSpawn

if TYPE_CHECKING:
    from idleprogress.achievement import AchievementEvaluator, AchievementUnlock
    from idleprogress.catchup import OfflineCatchupIntegrator
    from idleprogress.monster import MonsterCombatResolver, MonsterReward
    from idleprogress.rng import RandomSource
    from idleprogress.state import EngineState

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    """What happened during one ``advance`` call."""

    tick_number: int = 0
    resource_gained: float = 0.0
    currency_gained: float = 0.0
    unlocks: list[AchievementUnlock] = field(default_factory=list)
    rewards: list[MonsterReward] = field(default_factory=list)
    spawned: BonusSpawn | None = None
    bonus_catchup: CatchupResult | None = None
    skipped: bool = False


class TickScheduler:
    """Runs the fixed per-second update order against an EngineState."""

    def __init__(
        self,
        resolver: MonsterCombatResolver,
        evaluator: AchievementEvaluator,
        rng: RandomSource,
        catchup: OfflineCatchupIntegrator,
        debug: bool = False,
    ) -> None:
        self.resolver = resolver
        self.evaluator = evaluator
        self.rng = rng
        self.catchup = catchup
        self.debug = debug
        self._busy = False

    def advance(self, state: EngineState, now: float) -> TickReport:
        """Simulate the second ending at *now*."""
        if self._busy:
            msg = "TickScheduler.advance called while a tick is in progress"
            if self.debug:
                raise RuntimeError(msg)
            logger.error(msg)
            return TickReport(tick_number=state.run.tick_number, skipped=True)

        self._busy = True
        try:
            return self._advance(state, now)
        finally:
            self._busy = False

    def _advance(self, state: EngineState, now: float) -> TickReport:
        run = state.run
        meta = state.meta
        report = TickReport()
        state.now = now

        if run.last_click_time is not None and now - run.last_click_time > MOMENTUM_WINDOW_SECONDS:
            run.momentum_clicks = 0

        AgingPowerTracker(run).advance()

        if run.currency_power > 0:
            meta.currency = clamp_finite(meta.currency + run.currency_power)
            report.currency_gained = run.currency_power

        if state.mode is not GameMode.MONSTER:
            gained = resource_per_second(state, now)
            run.resource = clamp_finite(run.resource + gained)
            run.lifetime_resource = clamp_finite(run.lifetime_resource + gained)
            report.resource_gained = gained

        run.tick_number += 1

        if state.mode is GameMode.ANTIMATTER:
            tick_antimatter(run, meta, 1, hunter_multiplier(state.monster.hunter_level))
        elif state.mode is GameMode.MONSTER:
            outcome = self.resolver.resolve_second(state.monster, meta)
            report.rewards.extend(outcome.rewards)

        report.spawned = self._roll_spawn(state, now)

        if run.bonus_ticks_per_second > 0 and state.mode is not GameMode.MONSTER:
            report.bonus_catchup = self.catchup.integrate(
                state, run.bonus_ticks_per_second, now, synthetic=True
            )

        run.last_active_time = now
        report.unlocks = self.evaluator.evaluate(state)
        report.tick_number = run.tick_number
        logger.debug(
            "Tick %d (%s): +%.4g resource, +%.4g currency",
            run.tick_number, state.mode.value, report.resource_gained, report.currency_gained,
        )
        return report

    def _roll_spawn(self, state: EngineState, now: float) -> BonusSpawn | None:
        run = state.run
        run.bonus_spawns = [
            b for b in run.bonus_spawns if now - b.spawn_time < BONUS_SPAWN_LIFETIME
        ]
        chance = clamp(run.spawn_chance, 0.0, 1.0)
        if chance <= 0 or self.rng.uniform() >= chance:
            return None
        spawn = BonusSpawn(id=run.next_spawn_id, spawn_time=now)
        run.next_spawn_id += 1
        run.bonus_spawns.append(spawn)
        return spawn
