"""Tests for cost_scaling module."""
import math

import pytest

from idleprogress.cost_scaling import (
    CostScaling,
    base_cost,
    cost_factor,
    experience_to_next,
    output_per_tick,
)


def test_base_cost():
    assert base_cost(1, 0) == pytest.approx(100.0)
    assert base_cost(2, 1) == pytest.approx(10 ** (2 * 1.99))


def test_base_cost_approaches_rank_power_of_ten():
    assert base_cost(3, 10_000) == pytest.approx(1000.0)


def test_cost_factor():
    assert cost_factor(1) == 10.0
    assert cost_factor(9) == 2.0
    assert cost_factor(0) == math.inf


def test_output_per_tick():
    assert output_per_tick(1, 5) == 5.0
    assert output_per_tick(3, 2) == 200.0


def test_experience_to_next():
    assert experience_to_next(1) == 8
    assert experience_to_next(2) == 27


def test_rank_curve():
    cs = CostScaling.rank_curve()
    first = cs.compute(1, 9, 0)
    assert first == pytest.approx(base_cost(1, 9))
    assert cs.compute(1, 9, 3) == pytest.approx(first * 8)


def test_rank_curve_level_zero_unbuyable():
    assert CostScaling.rank_curve().compute(1, 0, 0) == math.inf


def test_rank_curve_overflow_is_unbuyable_not_nan():
    cost = CostScaling.rank_curve().compute(50, 1, 10_000)
    assert not math.isnan(cost)
    assert cost > 1e300


def test_fixed():
    cs = CostScaling.fixed(50)
    assert cs.compute(1, 1, 0) == 50
    assert cs.compute(5, 3, 100) == 50


def test_exponential():
    cs = CostScaling.exponential(10, 1.15)
    assert cs.compute(1, 1, 0) == pytest.approx(10.0)
    assert cs.compute(1, 1, 2) == pytest.approx(10 * 1.15 ** 2)


def test_custom():
    cs = CostScaling.custom(lambda rank, level, copies: rank * 100 + copies)
    assert cs.compute(2, 1, 5) == 205
