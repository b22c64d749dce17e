from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING

from idleprogress._types import clamp, finite_or
from idleprogress.modes import GameMode, Tactic
from idleprogress.polynomial import AntimatterPolynomial

if TYPE_CHECKING:
    from idleprogress.achievement import AchievementRecord
    from idleprogress.modifier import ModifierOwnership

CLICK_POWER_FLOOR = 1.0
RPS_POWER_FLOOR = 1.0
CURRENCY_POWER_FLOOR = 0.0


@dataclass
class BonusSpawn:
    """A collectable bonus that appeared during a tick."""

    id: int
    spawn_time: float


@dataclass
class RunState:
    """Per-run state of the active mode. Replaced wholesale on rebirth."""

    resource: float = 0.0
    lifetime_resource: float = 0.0
    resource_per_second: float = 0.0
    bonus_resource_per_second: float = 0.0
    base_resource_per_click: float = 0.0
    bonus_resource_per_click: float = 0.0

    # Clicking
    manual_clicks: int = 0
    manual_click_power: int = 1
    clicks_this_run: int = 0
    transfer_rate: float = 0.0
    momentum_clicks: int = 0
    momentum_cap: float = 0.0
    momentum_scale: float = 0.0
    idle_boost: float = 0.0
    last_click_time: float | None = None
    last_rock_click_time: float | None = None
    click_multiplicity: float = 1.0

    # Frenzy
    frenzy_active: bool = False
    frenzy_trigger_time: float | None = None
    frenzy_duration: float = 0.0
    frenzy_cooldown: float = 0.0
    frenzy_multiplier: float = 1.0

    # Aging
    click_power: float = CLICK_POWER_FLOOR
    rps_power: float = RPS_POWER_FLOOR
    currency_power: float = CURRENCY_POWER_FLOOR
    click_aging: float = 0.0
    rps_aging: float = 0.0
    currency_aging: float = 0.0

    # Coefficients
    rps_click_coeff: float = 0.0
    lifetime_click_coeff: float = 0.0
    click_ops_coeff: float = 0.0

    # Bonus spawns
    spawn_chance: float = 0.0
    bonus_spawns: list[BonusSpawn] = field(default_factory=list)
    next_spawn_id: int = 0

    rebirth_multiplier: float = 1.0
    bonus_ticks_per_second: int = 0

    # Antimatter
    antimatter: float = 0.0
    antimatter_per_second: float = 0.0
    polynomial: AntimatterPolynomial = field(default_factory=AntimatterPolynomial)

    tick_number: int = 0
    modifier_copies: dict[str, int] = field(default_factory=dict)
    last_active_time: float | None = None

    @classmethod
    def fresh(cls, mode: GameMode) -> RunState:
        """Documented reset values for a new run in *mode*."""
        run = cls()
        if mode is GameMode.ANTIMATTER:
            run.resource_per_second = 1.0
        return run

    def sanitize(self) -> None:
        """Restore the aging floors and replace non-finite numbers."""
        self.click_power = max(CLICK_POWER_FLOOR, finite_or(self.click_power, CLICK_POWER_FLOOR))
        self.rps_power = max(RPS_POWER_FLOOR, finite_or(self.rps_power, RPS_POWER_FLOOR))
        self.currency_power = max(
            CURRENCY_POWER_FLOOR, finite_or(self.currency_power, CURRENCY_POWER_FLOOR)
        )
        self.click_aging = finite_or(self.click_aging, 0.0)
        self.rps_aging = finite_or(self.rps_aging, 0.0)
        self.currency_aging = finite_or(self.currency_aging, 0.0)
        self.frenzy_multiplier = finite_or(self.frenzy_multiplier, 1.0)
        self.click_multiplicity = finite_or(self.click_multiplicity, 1.0)
        self.rebirth_multiplier = finite_or(self.rebirth_multiplier, 1.0)
        for name in (
            "resource",
            "lifetime_resource",
            "resource_per_second",
            "bonus_resource_per_second",
            "base_resource_per_click",
            "bonus_resource_per_click",
            "antimatter",
            "antimatter_per_second",
        ):
            setattr(self, name, finite_or(getattr(self, name), 0.0))
        self.manual_click_power = max(1, self.manual_click_power)
        self.bonus_ticks_per_second = max(0, self.bonus_ticks_per_second)


@dataclass
class MetaState:
    """Progress shared by every mode and kept across rebirths."""

    currency: float = 0.0
    lifetime_currency: float = 0.0
    dark_matter: float = 0.0
    pending_dark_matter: float = 0.0
    achievement_multiplier: float = 1.0
    overall_multiplier: float = 1.0
    max_single_run_reward: float = 1.0
    rebirth_count: int = 0
    total_clicks: int = 0
    total_manual_click_cycles: float = 0.0
    max_modifier_copies: int = 0
    deck_max_cards: int = 1
    deck_max_capacity: int = 1
    next_mode: GameMode = GameMode.MINING


@dataclass
class MonsterState:
    """Hunter progression and the monster currently being fought."""

    hunter_level: int = 1
    rage: float = 1.0
    attack: int = 1
    experience: int = 0
    kills: int = 0
    tactic: Tactic = Tactic.HEAD

    monster_class: str = ""
    name: str = ""
    rarity: int = 1
    level: int = 1
    stat_points: int = 0
    base_hp: float = 0.0
    base_def: float = 0.0
    base_regen: float = 0.0
    base_aura: float = 0.0
    current_hp: float = 0.0
    current_def: float = 0.0
    current_regen: float = 0.0
    current_aura: float = 0.0

    @property
    def spawned(self) -> bool:
        return bool(self.monster_class) and self.base_hp > 0

    @property
    def defeated(self) -> bool:
        return self.spawned and self.current_hp <= 0

    @property
    def exp_to_next_level(self) -> int:
        return (self.hunter_level + 1) ** 3

    def clamp_current(self) -> None:
        """Keep every current stat within ``[0, base]``."""
        self.base_hp = max(0.0, finite_or(self.base_hp, 0.0))
        self.base_def = max(0.0, finite_or(self.base_def, 0.0))
        self.base_regen = max(0.0, finite_or(self.base_regen, 0.0))
        self.base_aura = max(0.0, finite_or(self.base_aura, 0.0))
        self.current_hp = clamp(finite_or(self.current_hp, 0.0), 0.0, self.base_hp)
        self.current_def = clamp(finite_or(self.current_def, 0.0), 0.0, self.base_def)
        self.current_regen = clamp(finite_or(self.current_regen, 0.0), 0.0, self.base_regen)
        self.current_aura = clamp(finite_or(self.current_aura, 0.0), 0.0, self.base_aura)

    def clear_monster(self) -> None:
        for f in fields(self):
            if f.name.startswith(("base_", "current_")):
                setattr(self, f.name, 0.0)


class EngineState:
    """Mutable container for everything the progression engine owns."""

    def __init__(
        self,
        mode: GameMode = GameMode.MINING,
        run: RunState | None = None,
        meta: MetaState | None = None,
        monster: MonsterState | None = None,
    ) -> None:
        self.mode = mode
        self.run = run if run is not None else RunState.fresh(mode)
        self.meta = meta if meta is not None else MetaState(next_mode=mode)
        self.monster = monster if monster is not None else MonsterState()
        self.modifiers: dict[str, ModifierOwnership] = {}
        self.achievements: dict[str, AchievementRecord] = {}
        self.now: float = 0.0

    def modifier_level(self, modifier_id: str) -> int:
        owned = self.modifiers.get(modifier_id)
        return owned.level if owned else 0

    def modifier_copies(self, modifier_id: str) -> int:
        return self.run.modifier_copies.get(modifier_id, 0)

    def achievement_level(self, achievement_id: str) -> int:
        record = self.achievements.get(achievement_id)
        return record.level if record else 0
