from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from idleprogress.achievement import AchievementDef, default_achievements
from idleprogress.effect import COEFFICIENTS, EffectDef, EffectKind
from idleprogress.modes import GameMode
from idleprogress.modifier import ModifierDef
from idleprogress.monster import MonsterClassInfo, default_monster_classes

if TYPE_CHECKING:
    from idleprogress.state import EngineState


@dataclass
class GameConfig:
    """Top-level game configuration."""

    name: str = "Untitled"
    catchup_threshold: int = 60
    debug: bool = False
    seed: int | None = None
    autosave: bool = True


@dataclass
class GameDefinition:
    """Complete static definition of a progression game."""

    config: GameConfig = field(default_factory=GameConfig)
    modifiers: list[ModifierDef] = field(default_factory=list)
    achievements: list[AchievementDef] | None = None
    monster_classes: list[MonsterClassInfo] = field(default_factory=default_monster_classes)
    starting_mode: GameMode = GameMode.MINING
    starting_modifiers: list[str] = field(default_factory=list)

    # Lookup dicts built in __post_init__
    _modifiers_by_id: dict[str, ModifierDef] = field(
        default_factory=dict, init=False, repr=False
    )
    _achievements_by_id: dict[str, AchievementDef] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.achievements is None:
            self.achievements = default_achievements(self.modifiers)
        self._modifiers_by_id = {m.id: m for m in self.modifiers}
        self._achievements_by_id = {a.id: a for a in self.achievements}

    def get_modifier(self, id: str) -> ModifierDef | None:
        return self._modifiers_by_id.get(id)

    def get_achievement(self, id: str) -> AchievementDef | None:
        return self._achievements_by_id.get(id)

    def lookup(self, state: EngineState, id: str) -> tuple[int, list[EffectDef]] | None:
        """Owned level and effects of modifier *id*, or None if not owned."""
        mdef = self.get_modifier(id)
        owned = state.modifiers.get(id)
        if mdef is None or owned is None:
            return None
        return owned.level, mdef.effects

    def packs(self) -> dict[str, list[ModifierDef]]:
        result: dict[str, list[ModifierDef]] = {}
        for m in self.modifiers:
            result.setdefault(m.pack, []).append(m)
        return result

    def validate(self) -> list[str]:
        """Check for common definition errors. Returns list of error messages."""
        errors: list[str] = []

        seen_m: set[str] = set()
        for m in self.modifiers:
            if m.id in seen_m:
                errors.append(f"Duplicate modifier ID: {m.id!r}")
            seen_m.add(m.id)

        seen_a: set[str] = set()
        for a in self.achievements or []:
            if a.id in seen_a:
                errors.append(f"Duplicate achievement ID: {a.id!r}")
            seen_a.add(a.id)
            if a.repeatable and a.scale <= 1:
                errors.append(f"Achievement {a.id!r} is repeatable with scale {a.scale} <= 1")
            if a.repeatable and a.base_target <= 0:
                errors.append(f"Achievement {a.id!r} is repeatable with non-positive base target")

        for m in self.modifiers:
            if m.base_level < 1:
                errors.append(f"Modifier {m.id!r} has base_level {m.base_level} < 1")
            for eff in m.effects:
                if eff.kind is EffectKind.ADD_COEFFICIENT and eff.channel not in COEFFICIENTS:
                    errors.append(
                        f"Modifier {m.id!r} has effect targeting unknown coefficient {eff.channel!r}"
                    )
                elif eff.kind is EffectKind.ADD_AGING and eff.channel not in (
                    "click", "rps", "currency"
                ):
                    errors.append(
                        f"Modifier {m.id!r} has effect targeting unknown aging channel {eff.channel!r}"
                    )
                elif eff.kind is EffectKind.CUSTOM and eff.fn is None:
                    errors.append(f"Modifier {m.id!r} has a CUSTOM effect without fn")

        for mid in self.starting_modifiers:
            if mid not in seen_m:
                errors.append(f"Starting modifier references unknown modifier {mid!r}")

        if not self.monster_classes:
            errors.append("At least one monster class is required")
        for info in self.monster_classes:
            total = info.hp_prob + info.def_prob + info.regen_prob + info.aura_prob
            if min(info.hp_prob, info.def_prob, info.regen_prob, info.aura_prob) < 0:
                errors.append(f"Monster class {info.id!r} has a negative stat probability")
            elif abs(total - 1.0) > 1e-6:
                errors.append(
                    f"Monster class {info.id!r} stat probabilities sum to {total:.3f}, expected 1"
                )

        if self.config.catchup_threshold < 0:
            errors.append("catchup_threshold must be >= 0")

        return errors
