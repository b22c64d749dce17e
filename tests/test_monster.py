"""Tests for monster module."""
import pytest

from idleprogress.modes import Tactic
from idleprogress.monster import (
    AURA_SCALE,
    DEF_SCALE,
    HP_SCALE,
    REGEN_SCALE,
    MonsterClassInfo,
    MonsterCombatResolver,
)
from idleprogress.rng import ScriptedRandom
from idleprogress.state import MetaState, MonsterState


def _make_resolver(**kwargs) -> MonsterCombatResolver:
    return MonsterCombatResolver(ScriptedRandom(**kwargs))


def _make_monster(**kwargs) -> MonsterState:
    monster = MonsterState(monster_class="mythic", stat_points=1, rarity=1, level=1)
    for key, value in kwargs.items():
        setattr(monster, key, value)
    if "current_hp" not in kwargs:
        monster.current_hp = monster.base_hp
    return monster


def _total_points(monster: MonsterState) -> float:
    return (
        monster.base_hp / HP_SCALE
        + monster.base_def / DEF_SCALE
        + monster.base_regen / REGEN_SCALE
        + monster.base_aura / AURA_SCALE
    )


# ── Generation ──────────────────────────────────────────────────────


def test_generate_rolls_level_and_rarity():
    resolver = _make_resolver(uniforms=[0.9, 0.9, 0.1], gaussians=[3.2])
    monster = MonsterState(hunter_level=3)
    resolver.generate(monster)
    assert monster.level == 3
    assert monster.rarity == 3
    assert monster.stat_points == (3 * 3) ** 2
    assert _total_points(monster) == pytest.approx(81)
    assert monster.base_hp >= HP_SCALE
    assert monster.current_hp == monster.base_hp


def test_generate_level_never_below_one():
    resolver = _make_resolver(gaussians=[-4.0])
    monster = MonsterState()
    resolver.generate(monster)
    assert monster.level == 1


def test_generate_rarity_is_capped():
    resolver = _make_resolver(uniforms=[0.99])
    monster = MonsterState()
    resolver.generate(monster)
    assert monster.rarity == 10


def test_generate_uses_class_names():
    resolver = MonsterCombatResolver(
        ScriptedRandom(),
        [MonsterClassInfo("beast", hp_prob=1.0, def_prob=0.0, regen_prob=0.0, aura_prob=0.0,
                          names={1: "Boar"})],
    )
    monster = MonsterState()
    resolver.generate(monster)
    assert monster.monster_class == "beast"
    assert monster.name == "Boar"


def test_large_allocation_keeps_total():
    resolver = _make_resolver()
    monster = MonsterState(hunter_level=200)
    resolver.generate(monster)
    assert monster.stat_points == 40_000
    assert _total_points(monster) == pytest.approx(40_000)
    assert monster.base_hp / HP_SCALE == pytest.approx(10_001, abs=2)


# ── Rewards ─────────────────────────────────────────────────────────


def test_reward_for_defeated_monster():
    resolver = _make_resolver()
    meta = MetaState()
    monster = _make_monster(stat_points=4, rarity=2, base_hp=10.0, current_hp=0.0)
    reward = resolver.collect_reward(monster, meta)
    assert reward.currency == 800.0
    assert reward.experience == 4
    assert meta.currency == 800.0
    assert monster.experience == 4
    assert monster.kills == 1


def test_reward_levels_hunter_and_resets_rage():
    resolver = _make_resolver()
    meta = MetaState()
    monster = _make_monster(stat_points=30, base_hp=10.0, current_hp=0.0, rage=500.0)
    reward = resolver.collect_reward(monster, meta)
    # 30 xp: level 1 -> 2 costs 8, level 2 -> 3 costs 27
    assert reward.levels_gained == 1
    assert monster.hunter_level == 2
    assert monster.experience == 22
    assert monster.rage == 4.0
    assert monster.attack == 1


def test_collect_spawns_replacement():
    resolver = _make_resolver()
    monster = _make_monster(base_hp=10.0, current_hp=0.0)
    resolver.collect_reward(monster, MetaState())
    assert monster.spawned
    assert monster.current_hp == monster.base_hp


def test_ensure_monster_spawns_or_pays_out():
    resolver = _make_resolver()
    meta = MetaState()
    monster = MonsterState()
    assert resolver.ensure_monster(monster, meta) is None
    assert monster.spawned

    monster.current_hp = 0.0
    reward = resolver.ensure_monster(monster, meta)
    assert reward is not None
    assert meta.currency > 0


def test_bump_rage():
    monster = MonsterState(hunter_level=3, rage=1.0)
    assert MonsterCombatResolver.bump_rage(monster) == 10.0


# ── Combat ──────────────────────────────────────────────────────────


def test_head_attack_damage():
    resolver = _make_resolver()
    monster = _make_monster(base_hp=1000.0, base_def=10.0, current_def=10.0, rage=30.0,
                            attack=2, rarity=2, base_aura=1.0, current_aura=1.0)
    outcome = resolver.resolve_second(monster, MetaState())
    # (2 * 30 - 10) / (2 * (1 + 1))
    assert monster.current_hp == pytest.approx(1000.0 - 12.5)
    assert monster.rage == 29.0
    assert outcome.kills == 0


def test_head_attack_blocked_by_defense():
    resolver = _make_resolver()
    monster = _make_monster(base_hp=100.0, base_def=50.0, current_def=50.0, rage=10.0)
    resolver.resolve_second(monster, MetaState())
    assert monster.current_hp == 100.0


def test_body_attack_wears_regen_before_healing():
    resolver = _make_resolver()
    monster = _make_monster(base_hp=1000.0, current_hp=500.0, base_regen=10.0,
                            current_regen=10.0, rage=5000.0, tactic=Tactic.BODY)
    resolver.resolve_second(monster, MetaState())
    assert monster.current_regen == pytest.approx(5.0)
    assert monster.current_hp == pytest.approx(505.0)


def test_hyde_and_aura_wear():
    resolver = _make_resolver()
    meta = MetaState()
    monster = _make_monster(base_hp=100.0, base_def=10.0, current_def=10.0, rage=2000.0,
                            tactic=Tactic.HYDE)
    resolver.resolve_second(monster, meta)
    assert monster.current_def == pytest.approx(8.0)

    monster = _make_monster(base_hp=100.0, base_aura=1.0, current_aura=1.0, rage=500_000.0,
                            tactic=Tactic.AURA)
    resolver.resolve_second(monster, meta)
    assert monster.current_aura == pytest.approx(0.5)


def test_rage_decays_to_one():
    resolver = _make_resolver()
    monster = _make_monster(base_hp=1e9, rage=3.0)
    meta = MetaState()
    for _ in range(5):
        resolver.resolve_second(monster, meta)
    assert monster.rage == 1.0


def test_kill_pays_out_within_the_second():
    resolver = _make_resolver()
    meta = MetaState()
    monster = _make_monster(base_hp=5.0, stat_points=4, rarity=2, rage=10.0)
    outcome = resolver.resolve_second(monster, meta)
    assert outcome.kills == 1
    assert outcome.currency_earned == 800.0


# ── Closed form ─────────────────────────────────────────────────────


def _compare(seconds: int, **monster_fields):
    stepped_resolver = _make_resolver(uniforms=[0.5, 0.7, 0.2], gaussians=[1.0])
    closed_resolver = _make_resolver(uniforms=[0.5, 0.7, 0.2], gaussians=[1.0])
    stepped, closed = _make_monster(**monster_fields), _make_monster(**monster_fields)
    stepped_meta, closed_meta = MetaState(), MetaState()

    kills = 0
    for _ in range(seconds):
        kills += stepped_resolver.resolve_second(stepped, stepped_meta).kills
    outcome = closed_resolver.resolve(closed, closed_meta, seconds)

    assert outcome.kills == kills
    assert closed_meta.currency == pytest.approx(stepped_meta.currency)
    assert closed.hunter_level == stepped.hunter_level
    assert closed.rage == pytest.approx(stepped.rage)
    assert closed.current_hp == pytest.approx(stepped.current_hp)
    assert closed.current_def == pytest.approx(stepped.current_def)
    assert closed.current_regen == pytest.approx(stepped.current_regen)
    assert closed.current_aura == pytest.approx(stepped.current_aura)


def test_resolve_matches_seconds_with_kill():
    _compare(100, base_hp=1000.0, rage=50.0)


def test_resolve_matches_seconds_with_defense():
    _compare(60, base_hp=1e9, base_def=20.0, current_def=20.0, rage=45.0, attack=2)


def test_resolve_matches_seconds_with_regen():
    _compare(80, base_hp=5000.0, current_hp=2000.0, base_regen=3.0, current_regen=3.0,
             rage=120.0)


def test_resolve_matches_seconds_body():
    _compare(40, base_hp=1000.0, current_hp=500.0, base_regen=10.0, current_regen=10.0,
             rage=5000.0, tactic=Tactic.BODY)


def test_resolve_matches_seconds_hyde():
    _compare(30, base_hp=1000.0, current_hp=400.0, base_def=10.0, current_def=10.0,
             base_regen=2.0, current_regen=2.0, rage=300.0, tactic=Tactic.HYDE)


def test_resolve_zero_seconds():
    resolver = _make_resolver()
    monster = _make_monster(base_hp=10.0)
    outcome = resolver.resolve(monster, MetaState(), 0)
    assert outcome.kills == 0
    assert monster.current_hp == 10.0
