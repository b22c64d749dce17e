from __future__ import annotations

import logging
import math

from idleprogress.definition import GameDefinition
from idleprogress.metrics import MetricsCollector
from idleprogress.report import SimulationReport, build_report
from idleprogress.rng import SeededRandom
from idleprogress.runtime import GameRuntime
from idleprogress.storage import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)

MAX_PURCHASES_PER_TICK = 1_000


class Simulation:
    """Drives a GameRuntime headlessly on a synthetic clock.

    Each simulated second runs one tick, then applies the player model:
    clicks, bonus collection, frenzy activation, greedy cheapest-first
    modifier purchases, and a rebirth every ``rebirth_interval`` seconds.
    """

    def __init__(
        self,
        definition: GameDefinition,
        duration: int,
        clicks_per_second: float = 0.0,
        rebirth_interval: int | None = None,
        snapshot_interval: float = 1.0,
        seed: int | None = None,
        acquire_all: bool = False,
        auto_frenzy: bool = True,
        collect_bonuses: bool = True,
        store: KeyValueStore | None = None,
    ) -> None:
        self.definition = definition
        self.duration = max(0, int(duration))
        self.clicks_per_second = max(0.0, clicks_per_second)
        self.rebirth_interval = rebirth_interval
        self.auto_frenzy = auto_frenzy
        self.collect_bonuses = collect_bonuses

        rng_seed = seed if seed is not None else definition.config.seed
        self.runtime = GameRuntime(
            definition,
            store=store if store is not None else MemoryStore(),
            rng=SeededRandom(rng_seed),
            clock=lambda: 0.0,
        )
        self.collector = MetricsCollector(snapshot_interval=snapshot_interval)
        self._click_budget = 0.0

        if acquire_all:
            for mdef in definition.modifiers:
                self.runtime.acquire_modifier(mdef.id)

    def describe(self) -> str:
        parts = [f"greedy cheapest, {self.clicks_per_second:g} clicks/s"]
        if self.rebirth_interval:
            parts.append(f"rebirth every {self.rebirth_interval}s")
        return ", ".join(parts)

    def run(self) -> SimulationReport:
        state = self.runtime.get_state()
        start = state.now
        run_start = start

        for _ in range(self.duration):
            for report in self.runtime.advance(1):
                self.collector.record_unlocks(state, report.unlocks)
                self.collector.record_kills(state, report.rewards)
                if report.bonus_catchup is not None:
                    self.collector.record_catchup(state, report.bonus_catchup)
            now = state.now

            self._click(now)
            if self.collect_bonuses:
                for spawn in list(state.run.bonus_spawns):
                    self.runtime.collect_bonus(spawn.id)
            if self.auto_frenzy:
                self.runtime.activate_frenzy(now)
            self._buy_cheapest()

            if self.rebirth_interval and now - run_start >= self.rebirth_interval:
                result = self.runtime.rebirth(now)
                if result is not None:
                    self.collector.record_rebirth(state, result, now - run_start)
                run_start = now
                # rebirth swaps state.run and state.meta; state itself is stable

            self.collector.record_tick(state)

            if not (math.isfinite(state.run.resource) and math.isfinite(state.meta.currency)):
                return self._build_report("Aborted: NaN/Inf detected", start)

        return self._build_report("Duration reached", start)

    def _click(self, now: float) -> None:
        self._click_budget += self.clicks_per_second
        while self._click_budget >= 1.0:
            self.runtime.click(now)
            self._click_budget -= 1.0

    def _buy_cheapest(self) -> None:
        state = self.runtime.get_state()
        for _ in range(MAX_PURCHASES_PER_TICK):
            affordable = self.runtime.get_affordable_modifiers()
            if not affordable:
                return
            choice = min(affordable, key=lambda m: m.next_cost)
            if not self.runtime.purchase_modifier(choice.id):
                return
            self.collector.record_purchase(state, choice.id, choice.next_cost)
        logger.warning("Purchase limit reached in one tick at t=%.0f", state.now)

    def _build_report(self, outcome: str, start: float) -> SimulationReport:
        total = self.runtime.get_state().now - start
        logger.info("Simulation finished: %s after %.0fs", outcome, total)
        return build_report(
            collector=self.collector,
            game_name=self.definition.config.name,
            strategy_description=self.describe(),
            outcome=outcome,
            total_time=total,
            start_time=start,
        )
