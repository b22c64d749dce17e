from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Callable

from idleprogress.achievement import AchievementRecord
from idleprogress.modes import GameMode, mode_key, monster_key, parse_mode, parse_tactic
from idleprogress.modifier import ModifierOwnership
from idleprogress.polynomial import AntimatterPolynomial
from idleprogress.state import EngineState, MetaState, MonsterState, RunState

if TYPE_CHECKING:
    from idleprogress.storage import KeyValueStore

logger = logging.getLogger(__name__)

ACTIVE_MODE_KEY = "active_game_mode"
NEXT_MODE_KEY = "next_run_selected_option"
MODIFIERS_KEY = "modifier_collection"
COPIES_KEY = "modifier_copies"
POLYNOMIAL_KEY = "polynomial"
POLYNOMIAL_SCALARS_KEY = "polynomial_scalars"
TACTIC_KEY = "attack_mode"
ACHIEVEMENT_PREFIX = "achievement_"

# Run fields by store type. Optional timestamps are removed when unset.
_RUN_FLOATS = (
    "resource",
    "lifetime_resource",
    "resource_per_second",
    "bonus_resource_per_second",
    "base_resource_per_click",
    "bonus_resource_per_click",
    "transfer_rate",
    "momentum_cap",
    "momentum_scale",
    "idle_boost",
    "click_multiplicity",
    "frenzy_duration",
    "frenzy_cooldown",
    "frenzy_multiplier",
    "click_power",
    "rps_power",
    "currency_power",
    "click_aging",
    "rps_aging",
    "currency_aging",
    "rps_click_coeff",
    "lifetime_click_coeff",
    "click_ops_coeff",
    "spawn_chance",
    "rebirth_multiplier",
    "antimatter",
    "antimatter_per_second",
)
_RUN_INTS = (
    "manual_clicks",
    "manual_click_power",
    "clicks_this_run",
    "momentum_clicks",
    "bonus_ticks_per_second",
    "tick_number",
)
_RUN_OPTIONAL_FLOATS = (
    "last_click_time",
    "last_rock_click_time",
    "frenzy_trigger_time",
    "last_active_time",
)
_RUN_BOOLS = ("frenzy_active",)

_META_FLOATS = (
    "currency",
    "lifetime_currency",
    "dark_matter",
    "pending_dark_matter",
    "achievement_multiplier",
    "overall_multiplier",
    "max_single_run_reward",
    "total_manual_click_cycles",
)
_META_INTS = (
    "rebirth_count",
    "total_clicks",
    "max_modifier_copies",
    "deck_max_cards",
    "deck_max_capacity",
)

_MONSTER_FLOATS = (
    "rage",
    "base_hp",
    "base_def",
    "base_regen",
    "base_aura",
    "current_hp",
    "current_def",
    "current_regen",
    "current_aura",
)
_MONSTER_INTS = (
    "hunter_level",
    "attack",
    "experience",
    "kills",
    "rarity",
    "level",
    "stat_points",
)
_MONSTER_STRS = ("monster_class", "name")


def _read(store: KeyValueStore, key: str, getter: Callable[[str], Any], default: Any) -> Any:
    value = getter(key)
    if value is None:
        if key in store:
            logger.warning("Stored value for %r has the wrong type; using default", key)
        return default
    return value


# ── Save ────────────────────────────────────────────────────────────


def save_run(run: RunState, mode: GameMode, store: KeyValueStore) -> None:
    for name in _RUN_FLOATS:
        store.set_float(mode_key(name, mode), getattr(run, name))
    for name in _RUN_INTS:
        store.set_int(mode_key(name, mode), getattr(run, name))
    for name in _RUN_BOOLS:
        store.set_bool(mode_key(name, mode), getattr(run, name))
    for name in _RUN_OPTIONAL_FLOATS:
        value = getattr(run, name)
        if value is None:
            store.remove(mode_key(name, mode))
        else:
            store.set_float(mode_key(name, mode), value)
    store.set_str(mode_key(POLYNOMIAL_KEY, mode), run.polynomial.coefficients_json())
    store.set_str(mode_key(POLYNOMIAL_SCALARS_KEY, mode), run.polynomial.scalars_json())
    store.set_json(mode_key(COPIES_KEY, mode), run.modifier_copies)


def save_state(state: EngineState, store: KeyValueStore) -> None:
    """Write every persisted field of *state* and flush the store."""
    save_run(state.run, state.mode, store)

    meta = state.meta
    for name in _META_FLOATS:
        store.set_float(name, getattr(meta, name))
    for name in _META_INTS:
        store.set_int(name, getattr(meta, name))
    store.set_str(NEXT_MODE_KEY, meta.next_mode.value)
    store.set_str(ACTIVE_MODE_KEY, state.mode.value)

    monster = state.monster
    for name in _MONSTER_FLOATS:
        store.set_float(monster_key(name), getattr(monster, name))
    for name in _MONSTER_INTS:
        store.set_int(monster_key(name), getattr(monster, name))
    for name in _MONSTER_STRS:
        store.set_str(monster_key(name), getattr(monster, name))
    store.set_str(monster_key(TACTIC_KEY), monster.tactic.value)

    store.set_json(
        MODIFIERS_KEY,
        {
            mid: {"experience": owned.experience, "base_level": owned.base_level}
            for mid, owned in state.modifiers.items()
        },
    )
    for aid, record in state.achievements.items():
        store.set_int(f"{ACHIEVEMENT_PREFIX}{aid}_level", record.level)
        store.set_float(f"{ACHIEVEMENT_PREFIX}{aid}_progress", record.progress)

    store.flush()


# ── Load ────────────────────────────────────────────────────────────


def load_run(store: KeyValueStore, mode: GameMode) -> RunState:
    """Load the run stored for *mode*; missing fields take their reset values."""
    run = RunState.fresh(mode)
    for name in _RUN_FLOATS:
        setattr(run, name, _read(store, mode_key(name, mode), store.get_float, getattr(run, name)))
    for name in _RUN_INTS:
        setattr(run, name, _read(store, mode_key(name, mode), store.get_int, getattr(run, name)))
    for name in _RUN_BOOLS:
        setattr(run, name, _read(store, mode_key(name, mode), store.get_bool, getattr(run, name)))
    for name in _RUN_OPTIONAL_FLOATS:
        setattr(run, name, _read(store, mode_key(name, mode), store.get_float, None))

    run.polynomial = AntimatterPolynomial.from_json(
        store.get_json(mode_key(POLYNOMIAL_KEY, mode)),
        store.get_json(mode_key(POLYNOMIAL_SCALARS_KEY, mode)),
    )
    run.modifier_copies = _load_copies(store.get_json(mode_key(COPIES_KEY, mode)))
    run.sanitize()
    return run


def _load_copies(blob: str | None) -> dict[str, int]:
    decoded = _decode_object(blob, COPIES_KEY)
    copies: dict[str, int] = {}
    for mid, count in decoded.items():
        if isinstance(count, int) and not isinstance(count, bool) and count > 0:
            copies[str(mid)] = count
    return copies


def _decode_object(blob: str | None, label: str) -> dict:
    if not blob:
        return {}
    try:
        decoded = json.loads(blob)
    except ValueError:
        logger.warning("Corrupt %s blob; resetting", label)
        return {}
    if not isinstance(decoded, dict):
        logger.warning("%s blob is not an object; resetting", label)
        return {}
    return decoded


def load_meta(store: KeyValueStore) -> MetaState:
    meta = MetaState()
    for name in _META_FLOATS:
        setattr(meta, name, _read(store, name, store.get_float, getattr(meta, name)))
    for name in _META_INTS:
        setattr(meta, name, _read(store, name, store.get_int, getattr(meta, name)))
    meta.next_mode = parse_mode(store.get_str(NEXT_MODE_KEY))
    meta.max_single_run_reward = max(1.0, meta.max_single_run_reward)
    meta.achievement_multiplier = max(1.0, meta.achievement_multiplier)
    meta.overall_multiplier = max(1.0, meta.overall_multiplier)
    meta.deck_max_cards = max(1, meta.deck_max_cards)
    meta.deck_max_capacity = max(1, meta.deck_max_capacity)
    return meta


def load_monster(store: KeyValueStore) -> MonsterState:
    monster = MonsterState()
    for name in _MONSTER_INTS:
        setattr(monster, name, _read(store, monster_key(name), store.get_int, getattr(monster, name)))
    for name in _MONSTER_STRS:
        setattr(monster, name, _read(store, monster_key(name), store.get_str, getattr(monster, name)))
    for name in _MONSTER_FLOATS:
        if name == "rage":
            continue
        setattr(monster, name, _read(store, monster_key(name), store.get_float, 0.0))

    monster.hunter_level = max(1, monster.hunter_level)
    monster.attack = max(1, monster.attack)
    monster.rarity = max(1, monster.rarity)
    default_rage = float(monster.hunter_level ** 2)
    monster.rage = max(1.0, _read(store, monster_key("rage"), store.get_float, default_rage))
    monster.tactic = parse_tactic(store.get_str(monster_key(TACTIC_KEY)))
    monster.clamp_current()
    return monster


def _load_modifiers(store: KeyValueStore) -> dict[str, ModifierOwnership]:
    owned = {}
    for mid, entry in _decode_object(store.get_json(MODIFIERS_KEY), MODIFIERS_KEY).items():
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed modifier entry %r", mid)
            continue
        experience = entry.get("experience", 0)
        base_level = entry.get("base_level", 1)
        if not isinstance(experience, int) or not isinstance(base_level, int):
            logger.warning("Skipping malformed modifier entry %r", mid)
            continue
        owned[str(mid)] = ModifierOwnership(
            modifier_id=str(mid), experience=max(0, experience), base_level=max(1, base_level)
        )
    return owned


def _load_achievements(store: KeyValueStore) -> dict[str, AchievementRecord]:
    records = {}
    suffix = "_level"
    for key in store.keys():
        if not (key.startswith(ACHIEVEMENT_PREFIX) and key.endswith(suffix)):
            continue
        aid = key[len(ACHIEVEMENT_PREFIX):-len(suffix)]
        level = _read(store, key, store.get_int, 0)
        progress = _read(
            store, f"{ACHIEVEMENT_PREFIX}{aid}_progress", store.get_float, 0.0
        )
        records[aid] = AchievementRecord(level=max(0, level), progress=max(0.0, progress))
    return records


def load_state(store: KeyValueStore, mode: GameMode | None = None) -> EngineState:
    """Rebuild an EngineState. *mode* overrides the stored active mode."""
    active = mode if mode is not None else parse_mode(store.get_str(ACTIVE_MODE_KEY))
    state = EngineState(
        mode=active,
        run=load_run(store, active),
        meta=load_meta(store),
        monster=load_monster(store),
    )
    state.modifiers = _load_modifiers(store)
    state.achievements = _load_achievements(store)
    if state.run.last_active_time is not None:
        state.now = state.run.last_active_time
    return state

