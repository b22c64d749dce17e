"""Tests for simulation module."""
import pytest

from idleprogress.cost_scaling import CostScaling
from idleprogress.definition import GameConfig, GameDefinition
from idleprogress.effect import Effect, EffectKind
from idleprogress.metrics import MetricsCollector, PurchaseEvent, UnlockEvent
from idleprogress.modifier import ModifierDef
from idleprogress.report import build_report
from idleprogress.simulation import Simulation


def _simple_game() -> GameDefinition:
    return GameDefinition(
        config=GameConfig(name="SimpleTest"),
        modifiers=[
            ModifierDef(
                "lux",
                cost_scaling=CostScaling.exponential(10, 1.5),
                effects=[Effect.per_level(EffectKind.ADD_RESOURCE_PER_SECOND, 2.0)],
            ),
            ModifierDef(
                "vita",
                cost_scaling=CostScaling.fixed(50),
                effects=[Effect.flat(EffectKind.ADD_RESOURCE_PER_CLICK, 1.0)],
            ),
        ],
        starting_modifiers=["lux"],
    )


def test_runs_for_duration():
    sim = Simulation(_simple_game(), duration=120, clicks_per_second=5, seed=42)
    report = sim.run()

    assert report.outcome == "Duration reached"
    assert report.total_time == 120.0
    assert len(report.snapshots) == 120
    assert len(report.purchases) > 0
    assert all(p.modifier_id == "lux" for p in report.purchases)
    assert report.snapshots[-1].resource_per_second > 0


def test_acquire_all_unlocks_every_modifier():
    sim = Simulation(_simple_game(), duration=120, clicks_per_second=5, acquire_all=True)
    report = sim.run()
    assert sim.runtime.get_state().modifier_level("vita") == 1
    assert any(p.modifier_id == "vita" for p in report.purchases)


def test_no_clicks_no_income():
    report = Simulation(_simple_game(), duration=30).run()
    assert report.purchases == []
    assert report.snapshots[-1].resource == 0.0


def test_rebirth_interval():
    sim = Simulation(_simple_game(), duration=30, clicks_per_second=5, rebirth_interval=10)
    report = sim.run()
    assert [r.time for r in report.rebirths] == [10.0, 20.0, 30.0]
    assert all(r.reward > 0 for r in report.rebirths)
    assert report.total_rebirth_reward == pytest.approx(sum(r.reward for r in report.rebirths))
    assert sim.runtime.get_state().meta.rebirth_count == 3


def test_deterministic_with_seed():
    a = Simulation(_simple_game(), duration=60, clicks_per_second=3, seed=1).run()
    b = Simulation(_simple_game(), duration=60, clicks_per_second=3, seed=1).run()
    assert a.snapshots[-1].resource == b.snapshots[-1].resource
    assert len(a.purchases) == len(b.purchases)


def test_snapshot_interval():
    report = Simulation(_simple_game(), duration=60, snapshot_interval=10).run()
    assert [s.time for s in report.snapshots] == [1.0, 11.0, 21.0, 31.0, 41.0, 51.0]


def test_describe():
    sim = Simulation(_simple_game(), duration=1, clicks_per_second=2, rebirth_interval=60)
    assert sim.describe() == "greedy cheapest, 2 clicks/s, rebirth every 60s"


# ── Report ──────────────────────────────────────────────────────────


def test_build_report_derived_metrics():
    collector = MetricsCollector()
    collector.purchases = [
        PurchaseEvent(time=10.0, modifier_id="a", cost=1.0, copies=1, resource_after=0.0),
        PurchaseEvent(time=30.0, modifier_id="a", cost=2.0, copies=2, resource_after=0.0),
    ]
    collector.unlocks = [
        UnlockEvent(time=5.0, achievement_id="x", level=1),
        UnlockEvent(time=25.0, achievement_id="x", level=2),
    ]
    report = build_report(collector, "G", "s", "done", total_time=60.0)
    assert report.purchase_gaps == [10.0, 20.0]
    assert report.max_purchase_gap == 20.0
    assert report.mean_purchase_gap == 15.0
    assert report.purchases_per_minute == pytest.approx(2.0)
    assert report.unlock_time("x") == 5.0
    assert report.unlock_time("y") is None
    assert report.final_currency == 0.0


def test_build_report_empty():
    report = build_report(MetricsCollector(), "G", "s", "done", total_time=0.0)
    assert report.purchases_per_minute == 0.0
    assert report.max_purchase_gap == 0.0
    assert report.series("resource") == []
