from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable

from idleprogress._types import clamp, clamp_finite
from idleprogress.modes import Tactic

if TYPE_CHECKING:
    from idleprogress.rng import RandomSource
    from idleprogress.state import MetaState, MonsterState

logger = logging.getLogger(__name__)

HP_SCALE = 1_000_000.0
DEF_SCALE = 1_000.0
REGEN_SCALE = 1_000.0
AURA_SCALE = 1.0
RARITY_STOP_PROBABILITY = 0.66
MAX_RARITY = 10
LEVEL_SPREAD = 0.10
REWARD_PER_POINT = 100.0
WEAR_DIVISOR = 1_000.0
AURA_WEAR_DIVISOR = 1_000_000.0
# Above this many points, stat allocation switches to a normal approximation.
EXACT_SAMPLING_LIMIT = 10_000


class MonsterStat(Enum):
    HP = auto()
    DEF = auto()
    REGEN = auto()
    AURA = auto()


@dataclass(frozen=True)
class MonsterClassInfo:
    """A monster class with its stat-point distribution and named entries."""

    id: str
    hp_prob: float = 0.25
    def_prob: float = 0.25
    regen_prob: float = 0.25
    aura_prob: float = 0.25
    names: dict[int, str] = field(default_factory=dict)

    def sample_stat(self, rng: RandomSource) -> MonsterStat:
        r = rng.uniform()
        a = self.hp_prob
        b = a + self.def_prob
        c = b + self.regen_prob
        if r < a:
            return MonsterStat.HP
        if r < b:
            return MonsterStat.DEF
        if r < c:
            return MonsterStat.REGEN
        return MonsterStat.AURA

    def name_for(self, rarity: int) -> str:
        return self.names.get(rarity, "")


def default_monster_classes() -> list[MonsterClassInfo]:
    return [MonsterClassInfo("mythic", names={1: "Minotaur", 6: "Cerberus"})]


@dataclass(frozen=True)
class MonsterReward:
    """Payout for one defeated monster."""

    currency: float
    experience: int
    levels_gained: int
    monster_name: str
    rarity: int
    monster_level: int


@dataclass
class CombatOutcome:
    seconds: int = 0
    rewards: list[MonsterReward] = field(default_factory=list)

    @property
    def kills(self) -> int:
        return len(self.rewards)

    @property
    def currency_earned(self) -> float:
        return sum(r.currency for r in self.rewards)


# ── Closed-form helpers ─────────────────────────────────────────────


def _last_true(hi: int, pred: Callable[[int], bool]) -> int:
    """Largest k in [0, hi] with pred(k), for a predicate true on a prefix of 1..hi."""
    lo = 0
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if pred(mid):
            lo = mid
        else:
            hi = mid - 1
    return lo


class _RageCurve:
    """Rage used at step k is ``max(1, r0 - (k - 1))``."""

    def __init__(self, rage: float) -> None:
        self.r0 = max(1.0, rage)
        self.linear_steps = math.floor(self.r0)

    def at(self, k: int) -> float:
        return max(1.0, self.r0 - (k - 1))

    def total(self, n: int) -> float:
        """Sum of rage over steps 1..n."""
        if n <= 0:
            return 0.0
        m = self.linear_steps
        j = min(n, m)
        return j * self.r0 - j * (j - 1) / 2.0 + max(0, n - m)

    def total_of_totals(self, n: int) -> float:
        """Sum over k = 1..n of ``total(k)``."""
        if n <= 0:
            return 0.0
        m = self.linear_steps
        j = min(n, m)
        head = self.r0 * j * (j + 1) / 2.0 - (j - 1) * j * (j + 1) / 6.0
        if n <= m:
            return head
        extra = n - m
        return head + extra * self.total(m) + extra * (extra + 1) / 2.0

    def after(self, n: int) -> float:
        return max(1.0, self.r0 - n)


class MonsterCombatResolver:
    """Generates monsters and resolves combat seconds against MonsterState.

    ``resolve`` covers any number of seconds looping once per kill.
    """

    def __init__(
        self,
        rng: RandomSource,
        classes: list[MonsterClassInfo] | None = None,
    ) -> None:
        self.rng = rng
        self.classes = classes or default_monster_classes()

    # ── Generation ───────────────────────────────────────────────────

    def generate(self, monster: MonsterState) -> None:
        """Roll a new monster around the hunter's level."""
        info = self.classes[self.rng.choice_index(len(self.classes))]

        mean = max(1.0, float(monster.hunter_level))
        std = max(1.0, mean * LEVEL_SPREAD)
        rolled = self.rng.gaussian(mean, std)
        level = max(1, math.floor(rolled + 0.5)) if math.isfinite(rolled) else 1

        rarity = 1
        while rarity < MAX_RARITY:
            if self.rng.uniform() < RARITY_STOP_PROBABILITY:
                break
            rarity += 1

        stat_points = (level * rarity) ** 2
        points = self._allocate(info, stat_points)

        monster.monster_class = info.id
        monster.name = info.name_for(rarity)
        monster.rarity = rarity
        monster.level = level
        monster.stat_points = stat_points
        monster.base_hp = points[MonsterStat.HP] * HP_SCALE
        monster.base_def = points[MonsterStat.DEF] * DEF_SCALE
        monster.base_regen = points[MonsterStat.REGEN] * REGEN_SCALE
        monster.base_aura = points[MonsterStat.AURA] * AURA_SCALE
        monster.current_hp = monster.base_hp
        monster.current_def = monster.base_def
        monster.current_regen = monster.base_regen
        monster.current_aura = monster.base_aura
        logger.debug(
            "Generated %s monster level %d rarity %d (%d points)",
            info.id, level, rarity, stat_points,
        )

    def _allocate(self, info: MonsterClassInfo, stat_points: int) -> dict[MonsterStat, int]:
        points = {stat: 0 for stat in MonsterStat}
        if stat_points <= 0:
            return points
        points[MonsterStat.HP] = 1
        remaining = stat_points - 1
        if remaining <= EXACT_SAMPLING_LIMIT:
            for _ in range(remaining):
                points[info.sample_stat(self.rng)] += 1
            return points

        # Sequential binomials, each drawn from its normal approximation.
        mass = 1.0
        for stat, prob in (
            (MonsterStat.HP, info.hp_prob),
            (MonsterStat.DEF, info.def_prob),
            (MonsterStat.REGEN, info.regen_prob),
        ):
            if remaining <= 0 or mass <= 0:
                break
            p = clamp(prob / mass, 0.0, 1.0)
            mean = remaining * p
            std = math.sqrt(remaining * p * (1.0 - p))
            draw = int(clamp(round(self.rng.gaussian(mean, std)), 0, remaining))
            points[stat] += draw
            remaining -= draw
            mass -= prob
        points[MonsterStat.AURA] += remaining
        return points

    def ensure_monster(self, monster: MonsterState, meta: MetaState) -> MonsterReward | None:
        """Spawn a monster if none exists, or pay out one left defeated."""
        if not monster.spawned:
            self.generate(monster)
            return None
        if monster.defeated:
            return self.collect_reward(monster, meta)
        return None

    # ── Rewards ──────────────────────────────────────────────────────

    def collect_reward(self, monster: MonsterState, meta: MetaState) -> MonsterReward:
        """Pay out the defeated monster, level the hunter, spawn the next one."""
        reward = REWARD_PER_POINT * monster.stat_points * monster.rarity
        meta.currency = clamp_finite(meta.currency + reward)
        meta.lifetime_currency = clamp_finite(meta.lifetime_currency + reward)

        monster.kills += 1
        monster.experience += monster.stat_points
        levels = 0
        while monster.experience >= monster.exp_to_next_level:
            monster.experience -= monster.exp_to_next_level
            monster.hunter_level += 1
            levels += 1

        monster.rage = float(monster.hunter_level ** 2)
        monster.attack = max(1, monster.kills)
        result = MonsterReward(
            currency=reward,
            experience=monster.stat_points,
            levels_gained=levels,
            monster_name=monster.name,
            rarity=monster.rarity,
            monster_level=monster.level,
        )
        if levels:
            logger.info("Hunter reached level %d", monster.hunter_level)

        monster.clear_monster()
        self.generate(monster)
        return result

    @staticmethod
    def bump_rage(monster: MonsterState) -> float:
        """A click raises rage by the square of the hunter level."""
        level = max(1, monster.hunter_level)
        monster.rage = max(1.0, clamp_finite(monster.rage + level * level))
        return monster.rage

    # ── One second ───────────────────────────────────────────────────

    def resolve_second(self, monster: MonsterState, meta: MetaState) -> CombatOutcome:
        """Apply one second of combat."""
        outcome = CombatOutcome(seconds=1)
        pending = self.ensure_monster(monster, meta)
        if pending is not None:
            outcome.rewards.append(pending)
        monster.clamp_current()

        self._attack(monster)

        heal = max(0.0, monster.current_regen)
        if heal > 0:
            monster.current_hp = clamp(monster.current_hp + heal, 0.0, monster.base_hp)
        monster.rage = max(1.0, monster.rage - 1.0)
        monster.clamp_current()

        if monster.current_hp <= 0:
            monster.current_hp = 0.0
            outcome.rewards.append(self.collect_reward(monster, meta))
        return outcome

    def _attack(self, monster: MonsterState) -> None:
        atk = max(1.0, float(monster.attack))
        rage = max(1.0, monster.rage)
        rarity = max(1.0, float(monster.rarity))
        hit = atk * rage

        if monster.tactic is Tactic.HEAD:
            numerator = hit - monster.current_def
            if numerator <= 0:
                return
            dmg = numerator / (rarity * (1.0 + monster.current_aura))
            if dmg > 0:
                monster.current_hp = clamp(monster.current_hp - dmg, 0.0, monster.base_hp)
        elif monster.tactic is Tactic.BODY:
            delta = hit / (WEAR_DIVISOR * rarity)
            monster.current_regen = clamp(
                monster.current_regen - delta, 0.0, monster.base_regen
            )
        elif monster.tactic is Tactic.HYDE:
            delta = hit / (WEAR_DIVISOR * rarity)
            monster.current_def = clamp(monster.current_def - delta, 0.0, monster.base_def)
        elif monster.tactic is Tactic.AURA:
            delta = hit / (AURA_WEAR_DIVISOR * rarity)
            monster.current_aura = clamp(
                monster.current_aura - delta, 0.0, monster.base_aura
            )

    # ── Many seconds ─────────────────────────────────────────────────

    def resolve(self, monster: MonsterState, meta: MetaState, seconds: int) -> CombatOutcome:
        """Equivalent to *seconds* calls of ``resolve_second``."""
        outcome = CombatOutcome(seconds=max(0, seconds))
        remaining = seconds
        while remaining > 0:
            pending = self.ensure_monster(monster, meta)
            if pending is not None:
                outcome.rewards.append(pending)
                continue
            monster.clamp_current()
            steps, died = self._advance(monster, remaining)
            remaining -= steps
            if died:
                monster.current_hp = 0.0
                outcome.rewards.append(self.collect_reward(monster, meta))
        return outcome

    def _advance(self, monster: MonsterState, n: int) -> tuple[int, bool]:
        """Advance up to *n* seconds against the current monster.

        Returns the steps consumed and whether the monster died on the last one.
        """
        rage = _RageCurve(monster.rage)
        atk = max(1.0, float(monster.attack))
        rarity = max(1.0, float(monster.rarity))

        if monster.tactic is Tactic.HEAD:
            steps, died = self._advance_head(monster, rage, atk, rarity, n)
        else:
            self._advance_wear(monster, rage, atk, rarity, n)
            steps, died = n, False

        monster.rage = rage.after(steps)
        monster.clamp_current()
        return steps, died

    def _advance_wear(
        self, monster: MonsterState, rage: _RageCurve, atk: float, rarity: float, n: int
    ) -> None:
        base = monster.base_hp
        if monster.tactic is Tactic.BODY:
            c = atk / (WEAR_DIVISOR * rarity)
            regen0 = monster.current_regen
            healing = n if regen0 > 0 else 0
            healing = _last_true(healing, lambda k: c * rage.total(k) < regen0)
            heal_total = healing * regen0 - c * rage.total_of_totals(healing)
            monster.current_regen = max(0.0, regen0 - c * rage.total(n))
            monster.current_hp = min(base, monster.current_hp + max(0.0, heal_total))
            return

        regen = max(0.0, monster.current_regen)
        if monster.tactic is Tactic.HYDE:
            c = atk / (WEAR_DIVISOR * rarity)
            monster.current_def = max(0.0, monster.current_def - c * rage.total(n))
        else:
            c = atk / (AURA_WEAR_DIVISOR * rarity)
            monster.current_aura = max(0.0, monster.current_aura - c * rage.total(n))
        monster.current_hp = min(base, monster.current_hp + n * regen)

    def _advance_head(
        self, monster: MonsterState, rage: _RageCurve, atk: float, rarity: float, n: int
    ) -> tuple[int, bool]:
        base = monster.base_hp
        hp0 = monster.current_hp
        defense = monster.current_def
        divisor = rarity * (1.0 + monster.current_aura)
        regen = max(0.0, monster.current_regen)
        m = rage.linear_steps

        def damage(k: int) -> float:
            return max(0.0, atk * rage.at(k) - defense) / divisor

        # Damage is non-increasing in k, so positive damage is a prefix.
        if atk > defense:
            positive = n
        else:
            positive = _last_true(min(n, m), lambda k: atk * rage.at(k) > defense)

        def dealt(j: int) -> float:
            q = min(j, positive)
            return (atk * rage.total(q) - defense * q) / divisor

        # Steps where damage outpaces regeneration.
        if damage(m + 1) > regen:
            losing = n
        else:
            losing = _last_true(min(n, m), lambda k: damage(k) > regen)

        if regen <= 0:
            survived = _last_true(losing, lambda k: dealt(k) < hp0)
            if survived < losing:
                return survived + 1, True
            monster.current_hp = min(base, max(0.0, hp0 - dealt(n)))
            return n, False

        hp = hp0
        if losing > 0:
            hp = min(base, max(regen, hp0 + losing * regen - dealt(losing)))
        if losing < n:
            first = losing + 1
            hp = min(base, max(0.0, hp - damage(first)) + regen)
            rest = n - first
            hp = min(base, hp + rest * regen - (dealt(n) - dealt(first)))
        monster.current_hp = hp
        return n, False
