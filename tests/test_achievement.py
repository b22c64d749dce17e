"""Tests for achievement module."""
import pytest

from idleprogress.achievement import (
    Achievement,
    AchievementEvaluator,
    apply_achievement_reward,
    default_achievements,
)
from idleprogress.modifier import ModifierDef, ModifierOwnership
from idleprogress.state import EngineState, MetaState


def _make_state() -> EngineState:
    return EngineState()


def _counter_achievement(**kwargs):
    return Achievement.repeatable("clicks", lambda s: float(s.meta.total_clicks), **kwargs)


def test_one_shot_unlocks_once():
    adef = Achievement.one_shot("first_click", lambda s: float(s.meta.total_clicks))
    evaluator = AchievementEvaluator([adef])
    state = _make_state()

    assert evaluator.evaluate(state) == []
    state.meta.total_clicks = 5
    unlocks = evaluator.evaluate(state)
    assert [(u.achievement_id, u.level) for u in unlocks] == [("first_click", 1)]
    assert evaluator.evaluate(state) == []
    assert state.achievement_level("first_click") == 1


def test_repeatable_crosses_several_levels_at_once():
    evaluator = AchievementEvaluator([_counter_achievement()])
    state = _make_state()
    state.meta.total_clicks = 150
    unlocks = evaluator.evaluate(state)
    # targets 1, 10, 100 passed; 1000 not
    assert [u.level for u in unlocks] == [1, 2, 3]
    assert state.meta.achievement_multiplier == pytest.approx(1.03)


def test_progress_recorded_without_level_up():
    evaluator = AchievementEvaluator([_counter_achievement(base_target=10.0)])
    state = _make_state()
    state.meta.total_clicks = 4
    evaluator.evaluate(state)
    record = state.achievements["clicks"]
    assert record.level == 0
    assert record.progress == 4.0


def test_levels_never_decrease():
    evaluator = AchievementEvaluator([_counter_achievement()])
    state = _make_state()
    state.meta.total_clicks = 20
    evaluator.evaluate(state)
    state.meta.total_clicks = 0
    evaluator.evaluate(state)
    assert state.achievement_level("clicks") == 2
    assert state.achievements["clicks"].progress == 0.0


def test_infinite_progress_terminates():
    adef = Achievement.repeatable("inf", lambda s: float("inf"))
    state = _make_state()
    unlocks = AchievementEvaluator([adef]).evaluate(state)
    assert len(unlocks) > 300


def test_failing_progress_reads_as_zero():
    adef = Achievement.one_shot("broken", lambda s: 1 / 0)
    state = _make_state()
    assert AchievementEvaluator([adef]).evaluate(state) == []
    assert state.achievements["broken"].progress == 0.0


@pytest.mark.parametrize(
    "progress",
    [
        lambda s: None,
        lambda s: {}["missing"],
        lambda s: s.no_such_field,
        lambda s: "lots",
    ],
    ids=["none", "key_error", "attribute_error", "non_numeric"],
)
def test_bad_progress_does_not_stop_the_catalog(progress, caplog):
    evaluator = AchievementEvaluator([
        Achievement.one_shot("broken", progress),
        Achievement.one_shot("first_click", lambda s: float(s.meta.total_clicks)),
    ])
    state = _make_state()
    state.meta.total_clicks = 5

    with caplog.at_level("WARNING", logger="idleprogress.achievement"):
        unlocks = evaluator.evaluate(state)

    assert [(u.achievement_id, u.level) for u in unlocks] == [("first_click", 1)]
    assert state.achievements["broken"].progress == 0.0
    assert state.achievement_level("broken") == 0
    assert "Progress for 'broken' unavailable" in caplog.text


def test_reward_grows_deck():
    meta = MetaState()
    apply_achievement_reward(meta)
    assert meta.deck_max_capacity == 2
    assert meta.deck_max_cards == 1
    apply_achievement_reward(meta)
    apply_achievement_reward(meta)
    assert meta.deck_max_capacity == 4
    assert meta.deck_max_cards == 2
    assert meta.achievement_multiplier == pytest.approx(1.03)


def test_deck_is_capped():
    meta = MetaState(deck_max_cards=100, deck_max_capacity=20_000)
    apply_achievement_reward(meta)
    assert meta.deck_max_cards == 100


def test_pack_owned():
    adef = Achievement.pack_owned("ore", ["ore_1", "ore_2"], 2, "ore_complete")
    state = _make_state()
    state.modifiers["ore_1"] = ModifierOwnership("ore_1")
    evaluator = AchievementEvaluator([adef])
    assert evaluator.evaluate(state) == []
    state.modifiers["ore_2"] = ModifierOwnership("ore_2")
    assert len(evaluator.evaluate(state)) == 1


def test_default_catalog():
    modifiers = [
        ModifierDef("a_1", pack="a"),
        ModifierDef("a_2", pack="a", rank=-1),
        ModifierDef("loose"),
    ]
    ids = {a.id for a in default_achievements(modifiers)}
    assert {"rebirth_count", "current_rebirth_reward", "resource_per_second",
            "total_currency"} <= ids
    assert {"a_first", "a_complete", "a_rare"} <= ids
    assert not any(i.startswith("loose") for i in ids)


def test_default_catalog_rare_pack_entry():
    modifiers = [ModifierDef("a_1", pack="a"), ModifierDef("a_2", pack="a", rank=-1)]
    catalog = default_achievements(modifiers)
    evaluator = AchievementEvaluator(catalog)
    state = _make_state()
    state.modifiers["a_1"] = ModifierOwnership("a_1")
    unlocked = {u.achievement_id for u in evaluator.evaluate(state)}
    assert "a_first" in unlocked
    assert "a_rare" not in unlocked

    state.modifiers["a_2"] = ModifierOwnership("a_2")
    unlocked = {u.achievement_id for u in evaluator.evaluate(state)}
    assert unlocked == {"a_rare"}
