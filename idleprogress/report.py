from __future__ import annotations

from dataclasses import dataclass, field

from idleprogress.metrics import (
    CatchupEvent,
    KillEvent,
    MetricsCollector,
    ProgressSnapshot,
    PurchaseEvent,
    RebirthEvent,
    UnlockEvent,
)


@dataclass
class SimulationReport:
    """Container for simulation results and derived metrics."""

    game_name: str = ""
    strategy_description: str = ""
    outcome: str = ""
    total_time: float = 0.0

    # Raw metrics
    snapshots: list[ProgressSnapshot] = field(default_factory=list)
    purchases: list[PurchaseEvent] = field(default_factory=list)
    unlocks: list[UnlockEvent] = field(default_factory=list)
    rebirths: list[RebirthEvent] = field(default_factory=list)
    kills: list[KillEvent] = field(default_factory=list)
    catchups: list[CatchupEvent] = field(default_factory=list)

    # Derived metrics
    first_unlock_times: dict[str, float] = field(default_factory=dict)
    purchase_gaps: list[float] = field(default_factory=list)
    max_purchase_gap: float = 0.0
    mean_purchase_gap: float = 0.0
    purchases_per_minute: float = 0.0
    total_rebirth_reward: float = 0.0
    final_currency: float = 0.0
    final_dark_matter: float = 0.0

    def unlock_time(self, achievement_id: str) -> float | None:
        return self.first_unlock_times.get(achievement_id)

    def series(self, attribute: str) -> list[tuple[float, float]]:
        """Return (time, value) pairs for one ProgressSnapshot attribute."""
        return [(s.time, float(getattr(s, attribute))) for s in self.snapshots]


def build_report(
    collector: MetricsCollector,
    game_name: str,
    strategy_description: str,
    outcome: str,
    total_time: float,
    start_time: float = 0.0,
) -> SimulationReport:
    """Build a SimulationReport from collected metrics."""
    first_unlocks: dict[str, float] = {}
    for u in collector.unlocks:
        first_unlocks.setdefault(u.achievement_id, u.time - start_time)

    purchase_gaps: list[float] = []
    purchase_times = sorted(p.time - start_time for p in collector.purchases)
    if purchase_times:
        purchase_gaps.append(purchase_times[0])  # gap from the start to the first purchase
        for i in range(1, len(purchase_times)):
            purchase_gaps.append(purchase_times[i] - purchase_times[i - 1])

    max_gap = max(purchase_gaps) if purchase_gaps else 0.0
    mean_gap = (sum(purchase_gaps) / len(purchase_gaps)) if purchase_gaps else 0.0
    ppm = (len(collector.purchases) / total_time * 60.0) if total_time > 0 else 0.0

    last = collector.snapshots[-1] if collector.snapshots else None
    return SimulationReport(
        game_name=game_name,
        strategy_description=strategy_description,
        outcome=outcome,
        total_time=total_time,
        snapshots=collector.snapshots,
        purchases=collector.purchases,
        unlocks=collector.unlocks,
        rebirths=collector.rebirths,
        kills=collector.kills,
        catchups=collector.catchups,
        first_unlock_times=first_unlocks,
        purchase_gaps=purchase_gaps,
        max_purchase_gap=max_gap,
        mean_purchase_gap=mean_gap,
        purchases_per_minute=ppm,
        total_rebirth_reward=sum(r.reward for r in collector.rebirths),
        final_currency=last.currency if last else 0.0,
        final_dark_matter=last.dark_matter if last else 0.0,
    )
