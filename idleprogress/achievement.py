from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from idleprogress._types import ProgressFn, clamp_finite

if TYPE_CHECKING:
    from idleprogress.modifier import ModifierDef
    from idleprogress.state import EngineState, MetaState

logger = logging.getLogger(__name__)

MAX_DECK_CARDS = 100
MULTIPLIER_PER_LEVEL = 0.01
PACK_COMPLETION_TARGET = 11


@dataclass
class AchievementDef:
    """A progress function checked against a target after every tick."""

    id: str
    progress: ProgressFn
    name: str = ""
    base_target: float = 1.0
    repeatable: bool = False
    scale: float = 10.0
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.id

    def target_for_level(self, level: int) -> float:
        if not self.repeatable:
            return self.base_target
        try:
            return self.base_target * self.scale ** level
        except OverflowError:
            return math.inf


@dataclass
class AchievementRecord:
    level: int = 0
    progress: float = 0.0


@dataclass(frozen=True)
class AchievementUnlock:
    achievement_id: str
    level: int


class Achievement:
    """Convenience constructors for common achievement patterns."""

    @staticmethod
    def repeatable(
        id: str,
        progress: ProgressFn,
        name: str = "",
        base_target: float = 1.0,
        scale: float = 10.0,
    ) -> AchievementDef:
        """Levels up each time progress passes ``base_target * scale**level``."""
        return AchievementDef(
            id=id,
            progress=progress,
            name=name,
            base_target=base_target,
            repeatable=True,
            scale=scale,
        )

    @staticmethod
    def one_shot(
        id: str, progress: ProgressFn, name: str = "", target: float = 1.0
    ) -> AchievementDef:
        return AchievementDef(id=id, progress=progress, name=name, base_target=target)

    @staticmethod
    def pack_owned(
        pack: str, modifier_ids: list[str], target: float, id: str, name: str = ""
    ) -> AchievementDef:
        """One-shot on owning *target* distinct modifiers from *pack*."""
        _ids = tuple(modifier_ids)

        def _progress(state: EngineState) -> float:
            return float(sum(1 for mid in _ids if mid in state.modifiers))

        return AchievementDef(
            id=id,
            progress=_progress,
            name=name or f"{pack}: {int(target)} owned",
            base_target=target,
        )


def default_achievements(modifiers: list[ModifierDef] | None = None) -> list[AchievementDef]:
    """The standard catalog: four repeatable tracks plus per-pack one-shots."""
    from idleprogress.multipliers import resource_per_second
    from idleprogress.rebirth import mining_reward

    catalog = [
        Achievement.repeatable(
            "rebirth_count", lambda s: float(s.meta.rebirth_count), "Born Again"
        ),
        Achievement.repeatable(
            "current_rebirth_reward",
            lambda s: float(mining_reward(s.run)),
            "Refinery",
        ),
        Achievement.repeatable(
            "resource_per_second",
            lambda s: resource_per_second(s, s.now),
            "Production Line",
        ),
        Achievement.repeatable(
            "total_currency", lambda s: s.meta.lifetime_currency, "Hoarder"
        ),
    ]

    packs: dict[str, list[ModifierDef]] = {}
    for mdef in modifiers or []:
        if mdef.pack:
            packs.setdefault(mdef.pack, []).append(mdef)

    for pack, members in packs.items():
        ids = [m.id for m in members]
        rare = [m.id for m in members if m.rank < 0]
        catalog.append(
            Achievement.pack_owned(pack, ids, 1, f"{pack}_first", f"{pack}: first")
        )
        catalog.append(
            Achievement.pack_owned(
                pack, ids, PACK_COMPLETION_TARGET, f"{pack}_complete", f"{pack}: complete"
            )
        )
        catalog.append(
            Achievement.pack_owned(pack, rare, 1, f"{pack}_rare", f"{pack}: rare find")
        )
    return catalog


def apply_achievement_reward(meta: MetaState) -> None:
    """One reward: +1 capacity, maybe +1 deck slot, +0.01 multiplier."""
    meta.deck_max_capacity += 1
    if (
        (meta.deck_max_cards + 1) ** 2 <= meta.deck_max_capacity
        and meta.deck_max_cards < MAX_DECK_CARDS
    ):
        meta.deck_max_cards += 1
    meta.achievement_multiplier += MULTIPLIER_PER_LEVEL


class AchievementEvaluator:
    """Scans the catalog against engine state and grants level rewards."""

    def __init__(self, catalog: list[AchievementDef]) -> None:
        self.catalog = list(catalog)

    def _read_progress(self, adef: AchievementDef, state: EngineState) -> float:
        try:
            value = float(adef.progress(state))
        except Exception as e:
            logger.warning("Progress for %r unavailable: %s", adef.id, e)
            return 0.0
        return clamp_finite(value, 0.0)

    def evaluate(self, state: EngineState) -> list[AchievementUnlock]:
        """Record progress for every entry and apply any level-ups."""
        unlocks: list[AchievementUnlock] = []
        for adef in self.catalog:
            progress = self._read_progress(adef, state)
            record = state.achievements.setdefault(adef.id, AchievementRecord())
            record.progress = progress

            if not adef.repeatable or adef.scale <= 1 or adef.base_target <= 0:
                if record.level == 0 and progress >= adef.base_target:
                    record.level = 1
                    apply_achievement_reward(state.meta)
                    unlocks.append(AchievementUnlock(adef.id, 1))
                continue

            target = adef.target_for_level(record.level)
            while progress >= target:
                record.level += 1
                apply_achievement_reward(state.meta)
                unlocks.append(AchievementUnlock(adef.id, record.level))
                target = adef.target_for_level(record.level)

        for unlock in unlocks:
            logger.info("Achievement %s reached level %d", unlock.achievement_id, unlock.level)
        return unlocks
