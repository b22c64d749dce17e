from __future__ import annotations

import logging
import math
import threading
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator

from idleprogress._types import clamp_finite
from idleprogress.achievement import AchievementEvaluator
from idleprogress.catchup import CatchupResult, OfflineCatchupIntegrator
from idleprogress.definition import GameDefinition
from idleprogress.effect import StateEffectTarget, apply_effects
from idleprogress.modes import GameMode, parse_mode, parse_tactic
from idleprogress.modifier import ModifierStatus, acquire_modifier, next_cost
from idleprogress.monster import MonsterCombatResolver
from idleprogress.multipliers import (
    MOMENTUM_WINDOW_SECONDS,
    frenzy_ready,
    resource_per_click,
    resource_per_second,
)
from idleprogress.persistence import load_run, load_state, save_run, save_state
from idleprogress.rebirth import RebirthController, RebirthPreview, RebirthResult
from idleprogress.rng import SeededRandom
from idleprogress.scheduler import TickReport, TickScheduler
from idleprogress.state import EngineState, RunState
from idleprogress.storage import MemoryStore

if TYPE_CHECKING:
    from idleprogress.modes import Tactic
    from idleprogress.rng import RandomSource
    from idleprogress.storage import KeyValueStore

logger = logging.getLogger(__name__)


class GameRuntime:
    """Authoritative engine facade.

    Every mutating call runs under one lock. Calling back into the runtime
    from inside such a call (for example from a custom effect) is rejected.
    """

    def __init__(
        self,
        definition: GameDefinition,
        store: KeyValueStore | None = None,
        rng: RandomSource | None = None,
        clock: Callable[[], float] | None = None,
        state: EngineState | None = None,
    ) -> None:
        errors = definition.validate()
        if errors:
            raise ValueError(
                "Invalid GameDefinition:\n" + "\n".join(f"  - {e}" for e in errors)
            )

        self.definition = definition
        self.config = definition.config
        self.store = store if store is not None else MemoryStore()
        self.rng = rng if rng is not None else SeededRandom(self.config.seed)
        self.clock = clock if clock is not None else time.time

        self.resolver = MonsterCombatResolver(self.rng, definition.monster_classes)
        self.evaluator = AchievementEvaluator(definition.achievements or [])
        self.catchup = OfflineCatchupIntegrator(self.resolver, self.config.catchup_threshold)
        self.scheduler = TickScheduler(
            self.resolver, self.evaluator, self.rng, self.catchup, debug=self.config.debug
        )
        self.rebirth_controller = RebirthController()

        self._lock = threading.Lock()
        self._owner: int | None = None

        if state is None:
            state = self._new_state()
        self.state = state

    @classmethod
    def load(
        cls,
        definition: GameDefinition,
        store: KeyValueStore,
        *,
        rng: RandomSource | None = None,
        clock: Callable[[], float] | None = None,
        now: float | None = None,
    ) -> GameRuntime:
        """Restore a saved game from *store* and catch up to *now*."""
        state = load_state(store) if store.keys() else None
        runtime = cls(definition, store=store, rng=rng, clock=clock, state=state)
        if state is not None:
            runtime.resume(now)
        return runtime

    def _new_state(self) -> EngineState:
        now = float(self.clock())
        state = EngineState(self.definition.starting_mode)
        state.now = now
        state.run.last_active_time = now
        for mid in self.definition.starting_modifiers:
            mdef = self.definition.get_modifier(mid)
            if mdef is not None:
                acquire_modifier(state, mdef)
        return state

    # ── Serialization ────────────────────────────────────────────────

    @contextmanager
    def _exclusive(self, operation: str) -> Iterator[bool]:
        me = threading.get_ident()
        if self._owner == me:
            msg = f"GameRuntime.{operation} called while another engine call is running"
            if self.config.debug:
                raise RuntimeError(msg)
            logger.error(msg)
            yield False
            return
        with self._lock:
            self._owner = me
            try:
                yield True
            finally:
                self._owner = None

    def _now(self, now: float | None) -> float:
        return float(now) if now is not None else float(self.clock())

    def _effect_target(self) -> StateEffectTarget:
        return StateEffectTarget(self.state, offline=self._grant_offline)

    def _autosave(self) -> None:
        if self.config.autosave:
            save_state(self.state, self.store)

    # ── Core loop ────────────────────────────────────────────────────

    def tick(self, now: float | None = None) -> TickReport:
        """Run one scheduler second ending at *now* (wall clock by default)."""
        with self._exclusive("tick") as ok:
            if not ok:
                return TickReport(tick_number=self.state.run.tick_number, skipped=True)
            report = self.scheduler.advance(self.state, self._now(now))
            self._autosave()
            return report

    def advance(self, seconds: int = 1) -> list[TickReport]:
        """Run *seconds* scheduler ticks on the engine's own timeline."""
        with self._exclusive("advance") as ok:
            if not ok:
                return []
            reports = []
            for _ in range(max(0, int(seconds))):
                reports.append(self.scheduler.advance(self.state, self.state.now + 1.0))
            self._autosave()
            return reports

    def resume(self, now: float | None = None) -> CatchupResult:
        """Catch up from the last active time to *now*."""
        with self._exclusive("resume") as ok:
            if not ok:
                return CatchupResult()
            now = self._now(now)
            last = self.state.run.last_active_time
            elapsed = 0 if last is None else int(now - last)
            result = self.catchup.integrate(self.state, elapsed, now)
            if result.applied:
                self.evaluator.evaluate(self.state)
            self.state.now = now
            self.state.run.last_active_time = now
            self._autosave()
            return result

    def simulate_offline(self, seconds: int) -> CatchupResult:
        """Grant *seconds* of synthetic progress at the current time."""
        with self._exclusive("simulate_offline") as ok:
            if not ok:
                return CatchupResult()
            result = self._grant_offline(seconds)
            self._autosave()
            return result

    def _grant_offline(self, seconds: int) -> CatchupResult:
        result = self.catchup.integrate(self.state, seconds, self.state.now, synthetic=True)
        if result.applied:
            self.evaluator.evaluate(self.state)
        return result

    # ── Player actions ───────────────────────────────────────────────

    def click(self, now: float | None = None) -> float:
        """Process one manual click. Returns the resource added."""
        with self._exclusive("click") as ok:
            if not ok:
                return 0.0
            now = self._now(now)
            state = self.state
            if state.mode is GameMode.ANTIMATTER:
                return 0.0
            MonsterCombatResolver.bump_rage(state.monster)
            if state.mode is GameMode.MONSTER:
                return 0.0

            run = state.run
            if run.last_click_time is None or now - run.last_click_time > MOMENTUM_WINDOW_SECONDS:
                run.momentum_clicks = 0
            run.momentum_clicks += 1
            run.last_click_time = now

            transfer = run.transfer_rate
            run.resource_per_second = max(0.0, run.resource_per_second - transfer)
            run.base_resource_per_click = clamp_finite(run.base_resource_per_click + transfer)

            clicks_after = run.manual_clicks + run.manual_click_power * max(
                1, int(run.click_multiplicity)
            )
            value = resource_per_click(state, now, manual_clicks=clicks_after)

            run.resource = clamp_finite(run.resource + value)
            run.lifetime_resource = clamp_finite(run.lifetime_resource + value)
            run.manual_clicks = clicks_after
            run.clicks_this_run += 1
            state.meta.total_clicks += 1
            run.last_rock_click_time = now
            return value

    def purchase_modifier(self, modifier_id: str) -> bool:
        """Buy the next copy of an owned modifier. Returns True on success."""
        with self._exclusive("purchase_modifier") as ok:
            if not ok:
                return False
            mdef = self.definition.get_modifier(modifier_id)
            owned = self.state.modifiers.get(modifier_id)
            if mdef is None or owned is None:
                return False

            cost = next_cost(self.state, mdef)
            run = self.state.run
            if not math.isfinite(cost) or run.resource < cost:
                return False

            run.resource -= cost
            copies = run.modifier_copies.get(modifier_id, 0) + 1
            run.modifier_copies[modifier_id] = copies
            apply_effects(mdef.effects, self._effect_target(), owned.level, copies)

            meta = self.state.meta
            meta.max_modifier_copies = max(meta.max_modifier_copies, copies)
            logger.debug("Bought %s copy %d for %.4g", modifier_id, copies, cost)
            return True

    def acquire_modifier(self, modifier_id: str, experience: int = 1) -> bool:
        """Grant a modifier, or experience towards its next level."""
        with self._exclusive("acquire_modifier") as ok:
            if not ok:
                return False
            mdef = self.definition.get_modifier(modifier_id)
            if mdef is None:
                return False
            owned = acquire_modifier(self.state, mdef, experience)
            logger.debug("Modifier %s now level %d", modifier_id, owned.level)
            return True

    def activate_frenzy(self, now: float | None = None) -> bool:
        """Start the frenzy window. False while unarmed, running or cooling down."""
        with self._exclusive("activate_frenzy") as ok:
            if not ok:
                return False
            now = self._now(now)
            run = self.state.run
            if not frenzy_ready(run, now):
                return False
            run.frenzy_trigger_time = now
            logger.info(
                "Frenzy x%.3g for %.0fs", run.frenzy_multiplier, run.frenzy_duration
            )
            return True

    def collect_bonus(self, spawn_id: int) -> float:
        """Collect a live bonus spawn; returns the currency awarded (0 if gone)."""
        with self._exclusive("collect_bonus") as ok:
            if not ok:
                return 0.0
            run = self.state.run
            spawn = next((b for b in run.bonus_spawns if b.id == spawn_id), None)
            if spawn is None:
                return 0.0
            whole = math.floor(run.spawn_chance)
            fraction = run.spawn_chance - whole
            award = whole
            if fraction > 0 and self.rng.uniform() < fraction:
                award += 1
            award = max(1, award)
            run.bonus_spawns.remove(spawn)
            self.state.meta.currency = clamp_finite(self.state.meta.currency + award)
            return float(award)

    def set_next_mode(self, mode: str | GameMode) -> GameMode:
        with self._exclusive("set_next_mode") as ok:
            if ok:
                self.state.meta.next_mode = parse_mode(mode, self.state.meta.next_mode)
            return self.state.meta.next_mode

    def change_mode(self, mode: str | GameMode, now: float | None = None) -> CatchupResult:
        """Park the current run in the store and resume *mode*'s stored run."""
        target = parse_mode(mode, self.state.mode)
        with self._exclusive("change_mode") as ok:
            if not ok or target is self.state.mode:
                return CatchupResult()
            now = self._now(now)
            previous = self.state.mode
            self.state.run.last_active_time = now
            save_run(self.state.run, previous, self.store)
            run = load_run(self.store, target)
            if run.last_active_time is None:
                run.last_active_time = now
            self.state.run = run
            self.state.mode = target
            logger.info("Mode changed %s -> %s", previous.value, target.value)

        return self.resume(now)

    def set_tactic(self, tactic: str | Tactic) -> Tactic:
        with self._exclusive("set_tactic") as ok:
            if ok:
                self.state.monster.tactic = parse_tactic(tactic)
            return self.state.monster.tactic

    def rebirth(self, now: float | None = None) -> RebirthResult | None:
        """End the run and start the next one. None if the engine was busy."""
        with self._exclusive("rebirth") as ok:
            if not ok:
                return None
            now = self._now(now)
            result = self.rebirth_controller.transition(self.state, now)
            # The finished run's stored copy is stale from here on.
            save_run(RunState.fresh(result.previous_mode), result.previous_mode, self.store)
            self._autosave()
            return result

    def save(self) -> None:
        with self._exclusive("save") as ok:
            if ok:
                save_state(self.state, self.store)

    # ── Queries ──────────────────────────────────────────────────────

    def get_state(self) -> EngineState:
        """Return live reference to engine state."""
        return self.state

    def preview_rebirth(self) -> RebirthPreview:
        return self.rebirth_controller.preview(self.state)

    def current_resource_per_second(self) -> float:
        if self.state.mode is GameMode.MONSTER:
            return 0.0
        return resource_per_second(self.state, self.state.now)

    def current_resource_per_click(self) -> float:
        if self.state.mode is not GameMode.MINING:
            return 0.0
        run = self.state.run
        clicks_after = run.manual_clicks + run.manual_click_power * max(
            1, int(run.click_multiplicity)
        )
        return resource_per_click(self.state, self.state.now, manual_clicks=clicks_after)

    def modifier_cost(self, modifier_id: str) -> float:
        mdef = self.definition.get_modifier(modifier_id)
        if mdef is None:
            return math.inf
        return next_cost(self.state, mdef)

    def get_modifier_statuses(self, owned_only: bool = True) -> list[ModifierStatus]:
        result: list[ModifierStatus] = []
        for mdef in self.definition.modifiers:
            owned = self.state.modifiers.get(mdef.id)
            if owned is None and owned_only:
                continue
            cost = next_cost(self.state, mdef)
            result.append(
                ModifierStatus(
                    id=mdef.id,
                    name=mdef.name,
                    pack=mdef.pack,
                    rank=mdef.rank,
                    level=owned.level if owned else 0,
                    copies=self.state.modifier_copies(mdef.id),
                    next_cost=cost,
                    affordable=math.isfinite(cost) and self.state.run.resource >= cost,
                    max_copies=mdef.max_copies,
                )
            )
        return result

    def get_affordable_modifiers(self) -> list[ModifierStatus]:
        return [m for m in self.get_modifier_statuses() if m.affordable]

    def compute_time_to_afford(self, modifier_id: str) -> float | None:
        """Seconds until affordable at the current rate. None if never."""
        cost = self.modifier_cost(modifier_id)
        if not math.isfinite(cost):
            return None
        missing = cost - self.state.run.resource
        if missing <= 0:
            return 0.0
        rate = self.current_resource_per_second()
        if rate <= 0:
            return None
        return missing / rate
