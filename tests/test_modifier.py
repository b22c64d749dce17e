"""Tests for modifier module."""
import math

import pytest

from idleprogress.cost_scaling import CostScaling
from idleprogress.modifier import (
    ModifierDef,
    ModifierOwnership,
    acquire_modifier,
    next_cost,
)
from idleprogress.state import EngineState


def _make_def(**kwargs) -> ModifierDef:
    kwargs.setdefault("id", "lux")
    return ModifierDef(**kwargs)


def test_name_defaults_to_id():
    assert _make_def().name == "lux"
    assert _make_def(name="Lux").name == "Lux"


def test_level_from_experience():
    owned = ModifierOwnership("lux")
    assert owned.level == 1
    owned.experience = 7
    assert owned.level == 1
    owned.experience = 8
    assert owned.level == 2
    owned.experience = 8 + 27 + 5
    assert owned.level == 3
    assert owned.experience_into_level == 5
    assert owned.experience_needed == 64


def test_base_level_offsets_ladder():
    owned = ModifierOwnership("lux", experience=27, base_level=2)
    assert owned.level == 3


def test_add_experience_reports_levels():
    owned = ModifierOwnership("lux")
    assert owned.add_experience(7) == 0
    assert owned.add_experience(1 + 27) == 2
    assert owned.add_experience(-100) == 0
    assert owned.level == 3


def test_acquire_first_then_experience():
    state = EngineState()
    mdef = _make_def(base_level=2)
    owned = acquire_modifier(state, mdef)
    assert owned.level == 2
    assert owned.experience == 0

    acquire_modifier(state, mdef, experience=27)
    assert state.modifier_level("lux") == 3


def test_next_cost_requires_ownership():
    state = EngineState()
    mdef = _make_def(cost_scaling=CostScaling.fixed(10))
    assert next_cost(state, mdef) == math.inf
    acquire_modifier(state, mdef)
    assert next_cost(state, mdef) == 10


def test_next_cost_uses_copies_this_run():
    state = EngineState()
    mdef = _make_def(cost_scaling=CostScaling.exponential(10, 2.0))
    acquire_modifier(state, mdef)
    state.run.modifier_copies["lux"] = 3
    assert next_cost(state, mdef) == pytest.approx(80.0)


def test_next_cost_capped():
    state = EngineState()
    mdef = _make_def(cost_scaling=CostScaling.fixed(1), max_copies=2)
    acquire_modifier(state, mdef)
    state.run.modifier_copies["lux"] = 2
    assert next_cost(state, mdef) == math.inf
