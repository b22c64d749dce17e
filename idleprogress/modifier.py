from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from idleprogress.cost_scaling import CostScaling, experience_to_next
from idleprogress.effect import EffectDef

if TYPE_CHECKING:
    from idleprogress.state import EngineState


@dataclass
class ModifierDef:
    """Static definition of an acquirable modifier."""

    id: str
    name: str = ""
    rank: int = 1
    base_level: int = 1
    pack: str = ""
    description: str = ""
    effects: list[EffectDef] = field(default_factory=list)
    cost_scaling: CostScaling = field(default_factory=CostScaling.rank_curve)
    max_copies: int | None = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.id


@dataclass
class ModifierOwnership:
    """A modifier the player has obtained. Level is derived from experience."""

    modifier_id: str
    experience: int = 0
    base_level: int = 1

    @property
    def level(self) -> int:
        return self._walk()[0]

    @property
    def experience_into_level(self) -> int:
        return self._walk()[1]

    @property
    def experience_needed(self) -> int:
        return experience_to_next(self.level)

    def _walk(self) -> tuple[int, int]:
        level = max(1, self.base_level)
        remaining = self.experience
        while remaining >= experience_to_next(level):
            remaining -= experience_to_next(level)
            level += 1
        return level, remaining

    def add_experience(self, amount: int) -> int:
        """Add experience; returns the number of levels gained."""
        before = self.level
        self.experience += max(0, int(amount))
        return self.level - before


@dataclass(frozen=True)
class ModifierStatus:
    """Read-only snapshot of a modifier for query results."""

    id: str
    name: str
    pack: str
    rank: int
    level: int
    copies: int
    next_cost: float
    affordable: bool
    max_copies: int | None


def acquire_modifier(
    state: EngineState, mdef: ModifierDef, experience: int = 1
) -> ModifierOwnership:
    """Grant *mdef*: first acquisition creates it, repeats add experience."""
    owned = state.modifiers.get(mdef.id)
    if owned is None:
        owned = ModifierOwnership(modifier_id=mdef.id, base_level=mdef.base_level)
        state.modifiers[mdef.id] = owned
        return owned
    owned.add_experience(experience)
    return owned


def next_cost(state: EngineState, mdef: ModifierDef) -> float:
    """Price of the next copy this run; infinite when not owned or capped."""
    owned = state.modifiers.get(mdef.id)
    if owned is None:
        return float("inf")
    copies = state.modifier_copies(mdef.id)
    if mdef.max_copies is not None and copies >= mdef.max_copies:
        return float("inf")
    return mdef.cost_scaling.compute(mdef.rank, owned.level, copies)
