"""Tests for MCP server tool functions."""
from idleprogress.cost_scaling import CostScaling
from idleprogress.definition import GameConfig, GameDefinition
from idleprogress.effect import Effect, EffectKind
from idleprogress.modifier import ModifierDef
from idleprogress.state import BonusSpawn
from idleprogress.storage import JsonFileStore

from idleprogress.mcp.server import (
    _GameHolder,
    _new_runtime,
    _tool_acquire,
    _tool_activate_frenzy,
    _tool_click,
    _tool_collect_bonus,
    _tool_get_game_info,
    _tool_get_game_state,
    _tool_get_modifiers,
    _tool_go_offline,
    _tool_new_game,
    _tool_preview_rebirth,
    _tool_purchase,
    _tool_rebirth,
    _tool_set_next_mode,
    _tool_set_tactic,
    _tool_wait,
    create_server,
)
from idleprogress.mcp.__main__ import build_parser


def _make_test_definition() -> GameDefinition:
    """A small but complete game definition for testing."""
    return GameDefinition(
        config=GameConfig(name="Test Game"),
        modifiers=[
            ModifierDef(
                "lux",
                name="Lux",
                pack="lux",
                cost_scaling=CostScaling.fixed(10),
                effects=[Effect.per_level(EffectKind.ADD_RESOURCE_PER_SECOND, 1.0)],
            ),
            ModifierDef(
                "rouse",
                name="Rouse",
                pack="vita",
                cost_scaling=CostScaling.fixed(0),
                max_copies=1,
                effects=[Effect.frenzy(multiplier=2, duration=30)],
            ),
        ],
        starting_modifiers=["lux"],
    )


def _make_holder() -> _GameHolder:
    defn = _make_test_definition()
    return _GameHolder(definition=defn, runtime=_new_runtime(defn))


def test_get_game_info():
    info = _tool_get_game_info(_make_holder())
    assert info["name"] == "Test Game"
    assert info["modes"] == ["gold", "antimatter", "monster"]
    assert [m["id"] for m in info["modifiers"]] == ["lux", "rouse"]
    assert any(a["id"] == "rebirth_count" and a["repeatable"] for a in info["achievements"])


def test_get_game_state_initial():
    state = _tool_get_game_state(_make_holder())
    assert state["mode"] == "gold"
    assert state["run"]["resource"] == 0.0
    assert state["run"]["resource_per_click"] == 1.0
    assert state["run"]["frenzy_active"] is False
    assert state["meta"]["rebirth_count"] == 0
    assert state["hunter"]["tactic"] == "head"
    assert "monster" not in state
    assert "antimatter" not in state["run"]


def test_get_modifiers():
    result = _tool_get_modifiers(_make_holder())
    by_id = {m["id"]: m for m in result["modifiers"]}
    assert by_id["lux"]["owned"]
    assert by_id["lux"]["next_cost"] == 10.0
    assert by_id["lux"]["time_to_afford"] is None
    assert not by_id["rouse"]["owned"]
    assert by_id["rouse"]["next_cost"] is None


def test_click():
    holder = _make_holder()
    result = _tool_click(holder, 5)
    assert result["clicks"] == 5
    assert result["total_earned"] == 5.0
    assert result["new_balance"] == 5.0


def test_click_bounds():
    holder = _make_holder()
    assert "error" in _tool_click(holder, 0)
    assert "error" in _tool_click(holder, 1001)


def test_purchase():
    holder = _make_holder()
    assert _tool_purchase(holder, "lux") == {"success": False, "reason": "Cannot afford"}
    _tool_click(holder, 10)
    result = _tool_purchase(holder, "lux")
    assert result["success"]
    assert result["copies"] == 1
    assert result["cost_paid"] == 10.0


def test_purchase_unowned_and_unknown():
    holder = _make_holder()
    assert _tool_purchase(holder, "rouse")["reason"] == "Modifier not owned"
    assert "error" in _tool_purchase(holder, "nope")


def test_acquire():
    holder = _make_holder()
    assert _tool_acquire(holder, "rouse")["level"] == 1
    assert _tool_acquire(holder, "rouse", experience=8)["level"] == 2
    assert "error" in _tool_acquire(holder, "nope")


def test_wait():
    holder = _make_holder()
    _tool_click(holder, 10)
    _tool_purchase(holder, "lux")
    result = _tool_wait(holder, 10)
    assert result["waited"] == 10
    assert result["time"] == 10.0
    assert result["resource"] == 10.0


def test_wait_bounds():
    holder = _make_holder()
    assert "error" in _tool_wait(holder, 0)
    assert "error" in _tool_wait(holder, 86401)


def test_go_offline():
    holder = _make_holder()
    _tool_click(holder, 10)
    _tool_purchase(holder, "lux")
    short = _tool_go_offline(holder, 30)
    assert not short["applied"]
    result = _tool_go_offline(holder, 100)
    assert result["applied"]
    assert result["seconds"] == 100
    assert result["resource_gained"] == 100.0
    assert _tool_get_game_state(holder)["time"] == 130.0


def test_frenzy():
    holder = _make_holder()
    assert _tool_activate_frenzy(holder)["reason"] == "Frenzy not unlocked"
    _tool_acquire(holder, "rouse")
    _tool_purchase(holder, "rouse")
    assert _tool_activate_frenzy(holder) == {"success": True}
    assert _tool_activate_frenzy(holder)["reason"] == "Frenzy running or on cooldown"
    assert _tool_get_game_state(holder)["run"]["frenzy_active"] is True
    _tool_wait(holder, 60)
    assert _tool_activate_frenzy(holder) == {"success": True}


def test_collect_bonus():
    holder = _make_holder()
    holder.runtime.get_state().run.bonus_spawns = [BonusSpawn(4, 0.0)]
    assert _tool_collect_bonus(holder, 4) == {"success": True, "currency": 1.0}
    assert not _tool_collect_bonus(holder, 4)["success"]


def test_set_tactic_and_mode():
    holder = _make_holder()
    assert _tool_set_tactic(holder, "aura") == {"tactic": "aura"}
    assert _tool_set_next_mode(holder, "antimatter") == {"next_mode": "antimatter"}
    assert "error" in _tool_set_next_mode(holder, "sideways")


def test_rebirth():
    holder = _make_holder()
    _tool_click(holder, 8)
    _tool_set_next_mode(holder, "antimatter")
    preview = _tool_preview_rebirth(holder)
    assert preview["reward"] == 2.0
    assert preview["next_mode"] == "antimatter"

    result = _tool_rebirth(holder)
    assert result["success"]
    assert result["reward"] == 2.0
    state = _tool_get_game_state(holder)
    assert state["mode"] == "antimatter"
    assert state["meta"]["currency"] == 2.0
    assert state["run"]["polynomial"] == []


def test_new_game():
    holder = _make_holder()
    _tool_click(holder, 10)
    old = holder.runtime
    assert _tool_new_game(holder)["success"]
    assert holder.runtime is not old
    assert _tool_get_game_state(holder)["run"]["resource"] == 0.0


def test_resume_from_save_file(tmp_path):
    path = tmp_path / "save.json"
    defn = _make_test_definition()
    holder = _GameHolder(definition=defn, runtime=_new_runtime(defn, JsonFileStore(path)))
    _tool_click(holder, 10)
    _tool_purchase(holder, "lux")
    _tool_wait(holder, 10)
    holder.runtime.save()

    resumed = _GameHolder(definition=defn, runtime=_new_runtime(defn, JsonFileStore(path)))
    state = _tool_get_game_state(resumed)
    assert state["time"] == 10.0
    assert state["run"]["resource"] == 10.0

    _tool_new_game(resumed)
    fresh = _GameHolder(definition=defn, runtime=_new_runtime(defn, JsonFileStore(path)))
    assert _tool_get_game_state(fresh)["run"]["resource"] == 0.0


def test_entry_point_parser():
    args = build_parser().parse_args(["examples.gold_rush", "--save", "g.json"])
    assert args.module == "examples.gold_rush"
    assert args.save == "g.json"
    assert args.log_level is None


def test_create_server():
    server = create_server(_make_test_definition())
    assert server.name == "idleprogress: Test Game"
