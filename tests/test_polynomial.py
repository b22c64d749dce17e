"""Tests for polynomial module."""
import json

import pytest

from idleprogress.modes import GameMode
from idleprogress.polynomial import (
    DARK_MATTER_DIVISOR,
    AntimatterPolynomial,
    factorial_conversion,
    tick_antimatter,
)
from idleprogress.state import MetaState, RunState


def test_empty_polynomial_yields_nothing():
    poly = AntimatterPolynomial()
    assert poly.is_empty()
    assert poly.evaluate() == 0.0


def test_scalars_track_coefficient_length():
    poly = AntimatterPolynomial([1, 2, 3], [0.5])
    assert poly.scalars == [0.5, 1.0, 1.0]
    poly = AntimatterPolynomial([1], [2.0, 3.0])
    assert poly.scalars == [2.0]


def test_quadratic_propagation():
    poly = AntimatterPolynomial([0, 0, 1])
    yields = [poly.evaluate() for _ in range(4)]
    assert yields == [0.0, 1.0, 3.0, 6.0]
    assert poly.coefficients == [6, 4, 1]


def test_lower_terms_read_pre_step_values():
    poly = AntimatterPolynomial([5, 2, 3])
    poly.evaluate()
    # a0 += a1 (old 2), a1 += a2
    assert poly.coefficients == [7, 5, 3]


def test_step_multiplier_and_seconds_scale_the_step():
    poly = AntimatterPolynomial([0, 10])
    poly.evaluate(seconds=3, step_multiplier=2.0)
    assert poly.coefficients == [60, 10]


def test_fractional_scalar_truncates():
    poly = AntimatterPolynomial([0, 3], [1.0, 0.5])
    assert poly.evaluate() == 1.0
    assert poly.coefficients == [1, 3]


def test_huge_coefficients_saturate_on_conversion():
    poly = AntimatterPolynomial([10 ** 400])
    assert poly.evaluate() == pytest.approx(1.7976931348623157e308)


def test_nan_multiplier_is_identity():
    poly = AntimatterPolynomial([0, 4])
    poly.evaluate(step_multiplier=float("nan"))
    assert poly.coefficients == [4, 4]


def test_set_term_scalar_grows_arrays():
    poly = AntimatterPolynomial()
    poly.set_term_scalar(2, 0.25)
    assert poly.coefficients == [1, 1, 1]
    assert poly.scalars == [1.0, 1.0, 0.25]
    assert poly.degree == 2


def test_set_term_scalar_keeps_existing_coefficients():
    poly = AntimatterPolynomial([7, 8])
    poly.set_term_scalar(1, 3.0)
    assert poly.coefficients == [7, 8]
    assert poly.scalars == [1.0, 3.0]


def test_set_term_scalar_ignores_negative_degree():
    poly = AntimatterPolynomial([1])
    poly.set_term_scalar(-1, 5.0)
    assert poly.scalars == [1.0]


def test_json_blobs():
    poly = AntimatterPolynomial([1, 2 ** 70], [1.0, 0.5])
    restored = AntimatterPolynomial.from_json(poly.coefficients_json(), poly.scalars_json())
    assert restored.coefficients == [1, 2 ** 70]
    assert restored.scalars == [1.0, 0.5]


def test_corrupt_blob_resets_to_empty():
    poly = AntimatterPolynomial.from_json("{not json", "[1.0]")
    assert poly.is_empty()
    poly = AntimatterPolynomial.from_json(json.dumps({"a": 1}), None)
    assert poly.is_empty()


def test_malformed_entries_reset_to_empty():
    poly = AntimatterPolynomial.from_json(json.dumps(["x", 2]), None)
    assert poly.is_empty()


def test_factorial_conversion():
    assert factorial_conversion(0.0) == 0.0
    assert factorial_conversion(1.0) == 1.0
    # 6 -> /1 -> /2 = 3, stop at divisor 3: 2 + 3/3
    assert factorial_conversion(6.0) == pytest.approx(3.0)
    assert factorial_conversion(float("nan")) == 0.0


def test_factorial_conversion_is_bounded_for_huge_values():
    assert factorial_conversion(float("inf")) < 200


def test_tick_antimatter():
    run = RunState.fresh(GameMode.ANTIMATTER)
    run.polynomial = AntimatterPolynomial([0, 2])
    meta = MetaState()

    assert tick_antimatter(run, meta, 1) == 2.0
    assert run.antimatter == 0.0

    tick_antimatter(run, meta, 1)
    assert run.antimatter == 2.0
    assert run.antimatter_per_second == 4.0
    assert meta.pending_dark_matter == pytest.approx(
        factorial_conversion(2.0) / DARK_MATTER_DIVISOR
    )


def test_tick_antimatter_zero_seconds_is_noop():
    run = RunState.fresh(GameMode.ANTIMATTER)
    run.antimatter_per_second = 3.0
    meta = MetaState()
    assert tick_antimatter(run, meta, 0) == 3.0
    assert run.antimatter == 0.0
    assert meta.pending_dark_matter == 0.0
