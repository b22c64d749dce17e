"""Tests for aging module."""
import pytest

from idleprogress.aging import (
    AgingChannel,
    AgingPowerTracker,
    clamped_power_sum,
    power_after,
)
from idleprogress.modes import GameMode
from idleprogress.state import RunState


def _make_run(**kwargs) -> RunState:
    run = RunState.fresh(GameMode.MINING)
    for key, value in kwargs.items():
        setattr(run, key, value)
    return run


def _stepped_sum(run: RunState, channel: AgingChannel, seconds: int) -> float:
    tracker = AgingPowerTracker(run)
    total = 0.0
    for _ in range(seconds):
        tracker.advance()
        total += tracker.power(channel)
    return total


def test_sum_positive_aging_closed_form():
    # N*P0 + aging*N(N+1)/2
    assert clamped_power_sum(1.0, 0.5, 10, 1.0) == pytest.approx(10 + 0.5 * 55)


def test_sum_zero_seconds():
    assert clamped_power_sum(3.0, 1.0, 0, 1.0) == 0.0


def test_sum_negative_aging_hits_floor():
    # 2.0 decays by 0.25: 1.75, 1.5, 1.25, 1.0, then floor 1.0
    expected = 1.75 + 1.5 + 1.25 + 1.0 + 6 * 1.0
    assert clamped_power_sum(2.0, -0.25, 10, 1.0) == pytest.approx(expected)


def test_power_after_clamps_to_floor():
    assert power_after(2.0, -1.0, 100, 1.0) == 1.0
    assert power_after(0.0, -1.0, 5, 0.0) == 0.0
    assert power_after(1.0, 0.1, 10, 1.0) == pytest.approx(2.0)


def test_advance_applies_delta():
    run = _make_run(rps_aging=0.1, click_aging=0.2, currency_aging=0.5)
    AgingPowerTracker(run).advance()
    assert run.rps_power == pytest.approx(1.1)
    assert run.click_power == pytest.approx(1.2)
    assert run.currency_power == pytest.approx(0.5)


def test_advance_never_drops_below_floor():
    run = _make_run(rps_aging=-5.0, click_aging=-5.0, currency_aging=-5.0)
    tracker = AgingPowerTracker(run)
    for _ in range(3):
        tracker.advance()
    assert run.rps_power == 1.0
    assert run.click_power == 1.0
    assert run.currency_power == 0.0


def test_advance_recovers_from_nan_power():
    run = _make_run(rps_power=float("nan"))
    AgingPowerTracker(run).advance()
    assert run.rps_power == 1.0


@pytest.mark.parametrize("aging", [0.3, -0.07, 0.0])
def test_sum_over_matches_stepping(aging):
    run = _make_run(rps_power=3.0, rps_aging=aging)
    expected = _stepped_sum(_make_run(rps_power=3.0, rps_aging=aging), AgingChannel.RPS, 50)
    assert AgingPowerTracker(run).sum_over(AgingChannel.RPS, 50) == pytest.approx(expected)


def test_sum_over_with_offset_is_a_segment():
    run = _make_run(currency_power=0.0, currency_aging=1.0)
    tracker = AgingPowerTracker(run)
    whole = tracker.sum_over(AgingChannel.CURRENCY, 30)
    head = tracker.sum_over(AgingChannel.CURRENCY, 10)
    tail = tracker.sum_over(AgingChannel.CURRENCY, 20, offset=10)
    assert head + tail == pytest.approx(whole)


def test_advance_by_equals_repeated_advance():
    a = _make_run(rps_power=2.0, rps_aging=-0.03, click_aging=0.2, currency_aging=0.01)
    b = _make_run(rps_power=2.0, rps_aging=-0.03, click_aging=0.2, currency_aging=0.01)
    AgingPowerTracker(a).advance_by(100)
    tracker = AgingPowerTracker(b)
    for _ in range(100):
        tracker.advance()
    assert a.rps_power == pytest.approx(b.rps_power)
    assert a.click_power == pytest.approx(b.click_power)
    assert a.currency_power == pytest.approx(b.currency_power)


def test_advance_by_zero_is_noop():
    run = _make_run(rps_power=4.0, rps_aging=1.0)
    AgingPowerTracker(run).advance_by(0)
    assert run.rps_power == 4.0
