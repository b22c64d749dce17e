"""MCP server wrapping GameRuntime for interactive playtesting."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from mcp.server.fastmcp import FastMCP

from idleprogress.definition import GameDefinition
from idleprogress.modes import GameMode, parse_mode
from idleprogress.multipliers import frenzy_active, frenzy_cooldown_remaining
from idleprogress.persistence import load_state
from idleprogress.runtime import GameRuntime
from idleprogress.storage import KeyValueStore, MemoryStore

# Maximum seconds per wait() call (24 hours)
_MAX_WAIT = 86400
# Maximum clicks per click() call
_MAX_CLICKS = 1000


@dataclass
class _GameHolder:
    """Holds the active game definition and runtime."""

    definition: GameDefinition
    runtime: GameRuntime


def _new_runtime(definition: GameDefinition, store: KeyValueStore | None = None) -> GameRuntime:
    store = store if store is not None else MemoryStore()
    state = load_state(store) if store.keys() else None
    runtime = GameRuntime(definition, store=store, state=state, clock=lambda: 0.0)
    # Player actions happen at the game's own time, which only wait/go_offline move.
    runtime.clock = lambda: runtime.state.now
    return runtime


def _num(value: float, digits: int = 2) -> float | None:
    """Round for JSON; infinities become None."""
    if not math.isfinite(value):
        return None
    return round(value, digits)


# ── Tool logic functions (testable without MCP protocol) ────────────


def _tool_get_game_info(holder: _GameHolder) -> dict[str, Any]:
    defn = holder.definition
    return {
        "name": defn.config.name,
        "catchup_threshold": defn.config.catchup_threshold,
        "modes": [m.value for m in GameMode],
        "modifiers": [
            {"id": m.id, "name": m.name, "pack": m.pack, "rank": m.rank}
            for m in defn.modifiers
        ],
        "achievements": [
            {"id": a.id, "name": a.name, "repeatable": a.repeatable}
            for a in defn.achievements or []
        ],
    }


def _tool_get_game_state(holder: _GameHolder) -> dict[str, Any]:
    runtime = holder.runtime
    state = runtime.get_state()
    run, meta, monster = state.run, state.meta, state.monster
    result: dict[str, Any] = {
        "time": _num(state.now),
        "mode": state.mode.value,
        "next_mode": meta.next_mode.value,
        "run": {
            "resource": _num(run.resource),
            "lifetime_resource": _num(run.lifetime_resource),
            "resource_per_second": _num(runtime.current_resource_per_second(), 4),
            "resource_per_click": _num(runtime.current_resource_per_click(), 4),
            "manual_clicks": run.manual_clicks,
            "tick_number": run.tick_number,
            "frenzy_active": frenzy_active(run, state.now),
            "frenzy_cooldown": _num(frenzy_cooldown_remaining(run, state.now)),
            "bonus_spawns": [b.id for b in run.bonus_spawns],
        },
        "meta": {
            "currency": _num(meta.currency),
            "dark_matter": _num(meta.dark_matter, 6),
            "pending_dark_matter": _num(meta.pending_dark_matter, 6),
            "overall_multiplier": _num(meta.overall_multiplier, 4),
            "achievement_multiplier": _num(meta.achievement_multiplier, 4),
            "rebirth_count": meta.rebirth_count,
        },
        "hunter": {
            "level": monster.hunter_level,
            "rage": _num(monster.rage),
            "kills": monster.kills,
            "tactic": monster.tactic.value,
        },
        "achievements": {
            aid: rec.level for aid, rec in state.achievements.items() if rec.level > 0
        },
    }
    if state.mode is GameMode.ANTIMATTER:
        result["run"]["antimatter"] = _num(run.antimatter)
        result["run"]["polynomial"] = [str(c) for c in run.polynomial.coefficients]
    if monster.spawned:
        result["monster"] = {
            "name": monster.name or monster.monster_class,
            "level": monster.level,
            "rarity": monster.rarity,
            "hp": [_num(monster.current_hp), _num(monster.base_hp)],
            "def": [_num(monster.current_def), _num(monster.base_def)],
            "regen": [_num(monster.current_regen), _num(monster.base_regen)],
            "aura": [_num(monster.current_aura, 4), _num(monster.base_aura, 4)],
        }
    return result


def _tool_get_modifiers(holder: _GameHolder) -> dict[str, Any]:
    runtime = holder.runtime
    result = []
    for m in runtime.get_modifier_statuses(owned_only=False):
        time_to_afford = runtime.compute_time_to_afford(m.id) if m.level else None
        result.append({
            "id": m.id,
            "name": m.name,
            "pack": m.pack,
            "level": m.level,
            "owned": m.level > 0,
            "copies": m.copies,
            "next_cost": _num(m.next_cost),
            "affordable": m.affordable,
            "time_to_afford": _num(time_to_afford) if time_to_afford is not None else None,
        })
    return {"modifiers": result}


def _tool_acquire(holder: _GameHolder, modifier_id: str, experience: int = 1) -> dict[str, Any]:
    if holder.definition.get_modifier(modifier_id) is None:
        return {"error": f"Unknown modifier: {modifier_id!r}"}
    holder.runtime.acquire_modifier(modifier_id, experience)
    return {
        "success": True,
        "modifier_id": modifier_id,
        "level": holder.runtime.get_state().modifier_level(modifier_id),
    }


def _tool_purchase(holder: _GameHolder, modifier_id: str) -> dict[str, Any]:
    if holder.definition.get_modifier(modifier_id) is None:
        return {"error": f"Unknown modifier: {modifier_id!r}"}

    state = holder.runtime.get_state()
    if modifier_id not in state.modifiers:
        return {"success": False, "reason": "Modifier not owned"}

    cost = holder.runtime.modifier_cost(modifier_id)
    if holder.runtime.purchase_modifier(modifier_id):
        return {
            "success": True,
            "modifier_id": modifier_id,
            "copies": state.modifier_copies(modifier_id),
            "cost_paid": _num(cost),
        }
    return {"success": False, "reason": "Cannot afford"}


def _tool_click(holder: _GameHolder, count: int = 1) -> dict[str, Any]:
    if count < 1:
        return {"error": "Count must be at least 1"}
    if count > _MAX_CLICKS:
        return {"error": f"Count cannot exceed {_MAX_CLICKS}"}

    total = 0.0
    for _ in range(count):
        total += holder.runtime.click()
    state = holder.runtime.get_state()
    return {
        "clicks": count,
        "total_earned": _num(total),
        "new_balance": _num(state.run.resource),
        "rage": _num(state.monster.rage),
    }


def _tool_wait(holder: _GameHolder, seconds: int) -> dict[str, Any]:
    if seconds <= 0:
        return {"error": "Seconds must be positive"}
    if seconds > _MAX_WAIT:
        return {"error": f"Cannot wait more than {_MAX_WAIT} seconds (24h) per call"}

    state = holder.runtime.get_state()
    unlocks: list[str] = []
    kills = 0
    for report in holder.runtime.advance(int(seconds)):
        unlocks.extend(f"{u.achievement_id}:{u.level}" for u in report.unlocks)
        kills += len(report.rewards)

    result: dict[str, Any] = {
        "waited": int(seconds),
        "time": _num(state.now),
        "resource": _num(state.run.resource),
        "currency": _num(state.meta.currency),
    }
    if unlocks:
        result["new_achievements"] = unlocks
    if kills:
        result["kills"] = kills
    return result


def _tool_go_offline(holder: _GameHolder, seconds: int) -> dict[str, Any]:
    if seconds <= 0:
        return {"error": "Seconds must be positive"}
    state = holder.runtime.get_state()
    result = holder.runtime.resume(now=state.now + int(seconds))
    return {
        "applied": result.applied,
        "seconds": result.seconds,
        "resource_gained": _num(result.resource_gained),
        "currency_gained": _num(result.currency_gained),
        "frenzy_seconds": result.frenzy_seconds,
        "kills": result.kills,
    }


def _tool_activate_frenzy(holder: _GameHolder) -> dict[str, Any]:
    if holder.runtime.activate_frenzy():
        return {"success": True}
    run = holder.runtime.get_state().run
    if not run.frenzy_active:
        return {"success": False, "reason": "Frenzy not unlocked"}
    return {"success": False, "reason": "Frenzy running or on cooldown"}


def _tool_collect_bonus(holder: _GameHolder, spawn_id: int) -> dict[str, Any]:
    award = holder.runtime.collect_bonus(spawn_id)
    if award <= 0:
        return {"success": False, "reason": f"No live bonus with id {spawn_id}"}
    return {"success": True, "currency": award}


def _tool_set_tactic(holder: _GameHolder, tactic: str) -> dict[str, Any]:
    return {"tactic": holder.runtime.set_tactic(tactic).value}


def _tool_set_next_mode(holder: _GameHolder, mode: str) -> dict[str, Any]:
    selected = parse_mode(mode, default=None)
    if selected is None:
        return {"error": f"Unknown mode: {mode!r}"}
    return {"next_mode": holder.runtime.set_next_mode(selected).value}


def _tool_preview_rebirth(holder: _GameHolder) -> dict[str, Any]:
    p = holder.runtime.preview_rebirth()
    return {
        "mode": p.mode.value,
        "next_mode": p.next_mode.value,
        "reward": _num(p.reward),
        "dark_matter": _num(p.dark_matter, 6),
        "manual_click_cycles": _num(p.manual_click_cycles),
    }


def _tool_rebirth(holder: _GameHolder) -> dict[str, Any]:
    result = holder.runtime.rebirth()
    if result is None:
        return {"success": False, "reason": "Engine busy"}
    return {
        "success": True,
        "previous_mode": result.previous_mode.value,
        "next_mode": result.next_mode.value,
        "reward": _num(result.reward),
        "dark_matter_gained": _num(result.dark_matter_gained, 6),
        "overall_multiplier": _num(result.overall_multiplier, 4),
    }


def _tool_new_game(holder: _GameHolder) -> dict[str, Any]:
    store = holder.runtime.store
    for key in store.keys():
        store.remove(key)
    holder.runtime = _new_runtime(holder.definition, store)
    holder.runtime.save()
    return {"success": True, "message": "Game reset to initial state"}


# ── Server factory ──────────────────────────────────────────────────


def create_server(definition: GameDefinition, store: KeyValueStore | None = None) -> FastMCP:
    """Create an MCP server wrapping a GameRuntime for the given definition.

    A non-empty *store* resumes the saved game instead of starting fresh.
    """
    holder = _GameHolder(definition=definition, runtime=_new_runtime(definition, store))

    mcp = FastMCP(
        name=f"idleprogress: {definition.config.name}",
    )

    @mcp.tool()
    def get_game_info() -> dict[str, Any]:
        """Get static game overview: modes, modifiers, achievements."""
        return _tool_get_game_info(holder)

    @mcp.tool()
    def get_game_state() -> dict[str, Any]:
        """Get current state: run resource and rates, meta progress, hunter and monster."""
        return _tool_get_game_state(holder)

    @mcp.tool()
    def get_modifiers() -> dict[str, Any]:
        """List modifiers with ownership, level, next cost and time-to-afford."""
        return _tool_get_modifiers(holder)

    @mcp.tool()
    def acquire(modifier_id: str, experience: int = 1) -> dict[str, Any]:
        """Grant a modifier, or experience towards its next level if already owned."""
        return _tool_acquire(holder, modifier_id, experience)

    @mcp.tool()
    def purchase(modifier_id: str) -> dict[str, Any]:
        """Buy the next copy of an owned modifier with run resource."""
        return _tool_purchase(holder, modifier_id)

    @mcp.tool()
    def click(count: int = 1) -> dict[str, Any]:
        """Click N times (max 1000). Returns total earned."""
        return _tool_click(holder, count)

    @mcp.tool()
    def wait(seconds: int) -> dict[str, Any]:
        """Advance game time by the given seconds (max 86400), one tick per second."""
        return _tool_wait(holder, seconds)

    @mcp.tool()
    def go_offline(seconds: int) -> dict[str, Any]:
        """Leave the game for N seconds and apply closed-form catch-up on return."""
        return _tool_go_offline(holder, seconds)

    @mcp.tool()
    def activate_frenzy() -> dict[str, Any]:
        """Start the frenzy buff if it is unlocked and off cooldown."""
        return _tool_activate_frenzy(holder)

    @mcp.tool()
    def collect_bonus(spawn_id: int) -> dict[str, Any]:
        """Collect a live bonus spawn for currency."""
        return _tool_collect_bonus(holder, spawn_id)

    @mcp.tool()
    def set_tactic(tactic: str) -> dict[str, Any]:
        """Choose the monster attack: head, body, hyde or aura."""
        return _tool_set_tactic(holder, tactic)

    @mcp.tool()
    def set_next_mode(mode: str) -> dict[str, Any]:
        """Select the mode the next rebirth switches to."""
        return _tool_set_next_mode(holder, mode)

    @mcp.tool()
    def preview_rebirth() -> dict[str, Any]:
        """Show what a rebirth would pay right now."""
        return _tool_preview_rebirth(holder)

    @mcp.tool()
    def rebirth() -> dict[str, Any]:
        """End the current run, collect its reward and start the next mode."""
        return _tool_rebirth(holder)

    @mcp.tool()
    def new_game() -> dict[str, Any]:
        """Reset the game to initial state."""
        return _tool_new_game(holder)

    return mcp
