from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from idleprogress.multipliers import resource_per_second

if TYPE_CHECKING:
    from idleprogress.achievement import AchievementUnlock
    from idleprogress.catchup import CatchupResult
    from idleprogress.monster import MonsterReward
    from idleprogress.rebirth import RebirthResult
    from idleprogress.state import EngineState


@dataclass
class ProgressSnapshot:
    time: float
    mode: str
    resource: float
    lifetime_resource: float
    resource_per_second: float
    currency: float
    dark_matter: float
    pending_dark_matter: float
    hunter_level: int


@dataclass
class PurchaseEvent:
    time: float
    modifier_id: str
    cost: float
    copies: int
    resource_after: float


@dataclass
class UnlockEvent:
    time: float
    achievement_id: str
    level: int


@dataclass
class RebirthEvent:
    time: float
    previous_mode: str
    next_mode: str
    reward: float
    dark_matter: float
    run_duration: float


@dataclass
class KillEvent:
    time: float
    monster_name: str
    rarity: int
    currency: float


@dataclass
class CatchupEvent:
    time: float
    seconds: int
    resource_gained: float
    currency_gained: float


class MetricsCollector:
    """Collects simulation metrics at configurable intervals."""

    def __init__(self, snapshot_interval: float = 1.0) -> None:
        self.snapshot_interval = snapshot_interval
        self._last_snapshot_time: float | None = None

        self.snapshots: list[ProgressSnapshot] = []
        self.purchases: list[PurchaseEvent] = []
        self.unlocks: list[UnlockEvent] = []
        self.rebirths: list[RebirthEvent] = []
        self.kills: list[KillEvent] = []
        self.catchups: list[CatchupEvent] = []

    def record_tick(self, state: EngineState) -> None:
        """Record a snapshot if enough time has passed."""
        last = self._last_snapshot_time
        if last is None or state.now - last >= self.snapshot_interval:
            self._take_snapshot(state)
            self._last_snapshot_time = state.now

    def record_purchase(
        self, state: EngineState, modifier_id: str, cost: float
    ) -> None:
        self.purchases.append(
            PurchaseEvent(
                time=state.now,
                modifier_id=modifier_id,
                cost=cost,
                copies=state.modifier_copies(modifier_id),
                resource_after=state.run.resource,
            )
        )

    def record_unlocks(self, state: EngineState, unlocks: list[AchievementUnlock]) -> None:
        for u in unlocks:
            self.unlocks.append(
                UnlockEvent(time=state.now, achievement_id=u.achievement_id, level=u.level)
            )

    def record_rebirth(
        self, state: EngineState, result: RebirthResult, run_duration: float
    ) -> None:
        self.rebirths.append(
            RebirthEvent(
                time=state.now,
                previous_mode=result.previous_mode.value,
                next_mode=result.next_mode.value,
                reward=result.reward,
                dark_matter=result.dark_matter_gained,
                run_duration=run_duration,
            )
        )

    def record_kills(self, state: EngineState, rewards: list[MonsterReward]) -> None:
        for r in rewards:
            self.kills.append(
                KillEvent(
                    time=state.now,
                    monster_name=r.monster_name,
                    rarity=r.rarity,
                    currency=r.currency,
                )
            )

    def record_catchup(self, state: EngineState, result: CatchupResult) -> None:
        if not result.applied:
            return
        self.catchups.append(
            CatchupEvent(
                time=state.now,
                seconds=result.seconds,
                resource_gained=result.resource_gained,
                currency_gained=result.currency_gained,
            )
        )
        self.record_kills(state, list(result.rewards))

    def _take_snapshot(self, state: EngineState) -> None:
        self.snapshots.append(
            ProgressSnapshot(
                time=state.now,
                mode=state.mode.value,
                resource=state.run.resource,
                lifetime_resource=state.run.lifetime_resource,
                resource_per_second=resource_per_second(state, state.now),
                currency=state.meta.currency,
                dark_matter=state.meta.dark_matter,
                pending_dark_matter=state.meta.pending_dark_matter,
                hunter_level=state.monster.hunter_level,
            )
        )
