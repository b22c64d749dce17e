from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable

from idleprogress._types import LevelValue, clamp_finite, finite_or, resolve_level_value
from idleprogress.aging import AgingChannel

if TYPE_CHECKING:
    from idleprogress.state import EngineState, RunState


class EffectKind(Enum):
    ADD_RESOURCE_PER_SECOND = auto()
    ADD_BONUS_RESOURCE_PER_SECOND = auto()
    ADD_RESOURCE_PER_CLICK = auto()
    ADD_BONUS_RESOURCE_PER_CLICK = auto()
    ADD_CLICK_POWER = auto()
    ADD_COEFFICIENT = auto()
    ADD_AGING = auto()
    CONFIGURE_FRENZY = auto()
    CONFIGURE_MOMENTUM = auto()
    ADD_SPAWN_CHANCE = auto()
    ADD_BONUS_TICKS = auto()
    SET_POLYNOMIAL_TERM = auto()
    MULTIPLY_REBIRTH = auto()
    SIMULATE_OFFLINE = auto()
    CUSTOM = auto()


# Coefficient names accepted by ADD_COEFFICIENT.
COEFFICIENTS = (
    "rps_click",
    "lifetime_click",
    "click_ops",
    "click_multiplicity",
    "transfer",
    "idle_boost",
)

CustomEffectFn = Callable[['EffectTarget', int, int], None]


@dataclass
class EffectDef:
    """One effect of a modifier, interpreted by ``apply_effect``.

    ``value`` and each entry of ``params`` may be a literal or a callable
    taking ``(level, copies_this_run)``.
    """

    kind: EffectKind
    value: LevelValue = 0.0
    channel: str = ""
    params: dict[str, LevelValue] = field(default_factory=dict)
    fn: CustomEffectFn | None = None

    def resolve(self, level: int, copies: int) -> float:
        return finite_or(resolve_level_value(self.value, level, copies), 0.0)

    def param(self, name: str, level: int, copies: int, default: float = 0.0) -> float:
        if name not in self.params:
            return default
        return finite_or(resolve_level_value(self.params[name], level, copies), default)


class Effect:
    """Convenience constructors for common effect patterns."""

    @staticmethod
    def flat(kind: EffectKind, value: float, channel: str = "") -> EffectDef:
        """Constant value regardless of level."""
        return EffectDef(kind=kind, value=value, channel=channel)

    @staticmethod
    def per_level(kind: EffectKind, per_level: float, channel: str = "") -> EffectDef:
        """Value = level * per_level."""
        _per = per_level
        return EffectDef(kind=kind, value=lambda level, _copies: level * _per, channel=channel)

    @staticmethod
    def level_squared(kind: EffectKind, per_unit: float = 1.0, channel: str = "") -> EffectDef:
        """Value = level**2 * per_unit."""
        _per = per_unit
        return EffectDef(
            kind=kind, value=lambda level, _copies: level * level * _per, channel=channel
        )

    @staticmethod
    def coefficient(name: str, value: LevelValue) -> EffectDef:
        if name not in COEFFICIENTS:
            raise ValueError(f"Unknown coefficient: {name!r}. Expected one of {list(COEFFICIENTS)}")
        return EffectDef(kind=EffectKind.ADD_COEFFICIENT, value=value, channel=name)

    @staticmethod
    def aging(channel: AgingChannel, value: LevelValue) -> EffectDef:
        return EffectDef(kind=EffectKind.ADD_AGING, value=value, channel=channel.value)

    @staticmethod
    def frenzy(
        multiplier: LevelValue, duration: LevelValue, cooldown_fraction: LevelValue = 1.0
    ) -> EffectDef:
        """Arm frenzy; the cooldown is a fraction of the duration."""
        return EffectDef(
            kind=EffectKind.CONFIGURE_FRENZY,
            value=multiplier,
            params={"duration": duration, "cooldown_fraction": cooldown_fraction},
        )

    @staticmethod
    def momentum(cap: LevelValue, scale: LevelValue) -> EffectDef:
        return EffectDef(kind=EffectKind.CONFIGURE_MOMENTUM, value=cap, params={"scale": scale})

    @staticmethod
    def polynomial_term(degree: int, scalar: LevelValue) -> EffectDef:
        return EffectDef(
            kind=EffectKind.SET_POLYNOMIAL_TERM, value=scalar, params={"degree": degree}
        )

    @staticmethod
    def offline(seconds: LevelValue) -> EffectDef:
        """Grant a synthetic catch-up of *seconds*."""
        return EffectDef(kind=EffectKind.SIMULATE_OFFLINE, value=seconds)

    @staticmethod
    def custom(fn: CustomEffectFn) -> EffectDef:
        return EffectDef(kind=EffectKind.CUSTOM, fn=fn)


# ── Target interface ────────────────────────────────────────────────


class EffectTarget(ABC):
    """The only surface modifier effects may touch."""

    @abstractmethod
    def get_rate(self, name: str) -> float:
        """Read ``resource_per_second``, ``bonus_resource_per_second``,
        ``base_resource_per_click`` or ``bonus_resource_per_click``."""
        ...

    @abstractmethod
    def set_rate(self, name: str, value: float) -> None: ...

    @abstractmethod
    def get_click_power(self) -> int: ...

    @abstractmethod
    def set_click_power(self, value: int) -> None: ...

    @abstractmethod
    def get_coefficient(self, name: str) -> float: ...

    @abstractmethod
    def set_coefficient(self, name: str, value: float) -> None: ...

    @abstractmethod
    def get_aging(self, channel: AgingChannel) -> float: ...

    @abstractmethod
    def set_aging(self, channel: AgingChannel, value: float) -> None: ...

    @abstractmethod
    def configure_frenzy(self, duration: float, cooldown_fraction: float, multiplier: float) -> None: ...

    @abstractmethod
    def configure_momentum(self, cap: float, scale: float) -> None: ...

    @abstractmethod
    def get_spawn_chance(self) -> float: ...

    @abstractmethod
    def set_spawn_chance(self, value: float) -> None: ...

    @abstractmethod
    def get_bonus_ticks(self) -> int: ...

    @abstractmethod
    def set_bonus_ticks(self, value: int) -> None: ...

    @abstractmethod
    def set_polynomial_term(self, degree: int, scalar: float) -> None: ...

    @abstractmethod
    def get_rebirth_multiplier(self) -> float: ...

    @abstractmethod
    def set_rebirth_multiplier(self, value: float) -> None: ...

    @abstractmethod
    def simulate_offline(self, seconds: int) -> None: ...


_RATES = (
    "resource_per_second",
    "bonus_resource_per_second",
    "base_resource_per_click",
    "bonus_resource_per_click",
)

_COEFFICIENT_FIELDS = {
    "rps_click": "rps_click_coeff",
    "lifetime_click": "lifetime_click_coeff",
    "click_ops": "click_ops_coeff",
    "click_multiplicity": "click_multiplicity",
    "transfer": "transfer_rate",
    "idle_boost": "idle_boost",
}

_AGING_FIELDS = {
    AgingChannel.CLICK: "click_aging",
    AgingChannel.RPS: "rps_aging",
    AgingChannel.CURRENCY: "currency_aging",
}


class StateEffectTarget(EffectTarget):
    """EffectTarget over the active run of an EngineState."""

    def __init__(
        self,
        state: EngineState,
        offline: Callable[[int], object] | None = None,
    ) -> None:
        self._state = state
        self._offline = offline

    @property
    def _run(self) -> RunState:
        return self._state.run

    def get_rate(self, name: str) -> float:
        if name not in _RATES:
            raise ValueError(f"Unknown rate: {name!r}")
        return getattr(self._run, name)

    def set_rate(self, name: str, value: float) -> None:
        if name not in _RATES:
            raise ValueError(f"Unknown rate: {name!r}")
        setattr(self._run, name, clamp_finite(finite_or(value, 0.0)))

    def get_click_power(self) -> int:
        return self._run.manual_click_power

    def set_click_power(self, value: int) -> None:
        self._run.manual_click_power = max(1, int(value))

    def get_coefficient(self, name: str) -> float:
        return getattr(self._run, _COEFFICIENT_FIELDS[name])

    def set_coefficient(self, name: str, value: float) -> None:
        setattr(self._run, _COEFFICIENT_FIELDS[name], clamp_finite(finite_or(value, 0.0)))

    def get_aging(self, channel: AgingChannel) -> float:
        return getattr(self._run, _AGING_FIELDS[channel])

    def set_aging(self, channel: AgingChannel, value: float) -> None:
        setattr(self._run, _AGING_FIELDS[channel], clamp_finite(finite_or(value, 0.0)))

    def configure_frenzy(self, duration: float, cooldown_fraction: float, multiplier: float) -> None:
        run = self._run
        run.frenzy_duration = max(0.0, duration)
        run.frenzy_cooldown = max(0.0, duration * cooldown_fraction)
        run.frenzy_multiplier = max(1.0, multiplier)
        run.frenzy_active = True

    def configure_momentum(self, cap: float, scale: float) -> None:
        self._run.momentum_cap = max(0.0, cap)
        self._run.momentum_scale = max(0.0, scale)

    def get_spawn_chance(self) -> float:
        return self._run.spawn_chance

    def set_spawn_chance(self, value: float) -> None:
        self._run.spawn_chance = max(0.0, finite_or(value, 0.0))

    def get_bonus_ticks(self) -> int:
        return self._run.bonus_ticks_per_second

    def set_bonus_ticks(self, value: int) -> None:
        self._run.bonus_ticks_per_second = max(0, int(value))

    def set_polynomial_term(self, degree: int, scalar: float) -> None:
        self._run.polynomial.set_term_scalar(degree, scalar)

    def get_rebirth_multiplier(self) -> float:
        return self._run.rebirth_multiplier

    def set_rebirth_multiplier(self, value: float) -> None:
        self._run.rebirth_multiplier = finite_or(value, 1.0)

    def simulate_offline(self, seconds: int) -> None:
        if self._offline is not None and seconds > 0:
            self._offline(seconds)


# ── Dispatcher ──────────────────────────────────────────────────────


def _add_rate(name: str):
    def _apply(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
        target.set_rate(name, target.get_rate(name) + eff.resolve(level, copies))

    return _apply


def _add_click_power(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    target.set_click_power(target.get_click_power() + int(eff.resolve(level, copies)))


def _add_coefficient(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    current = target.get_coefficient(eff.channel)
    target.set_coefficient(eff.channel, current + eff.resolve(level, copies))


def _add_aging(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    channel = AgingChannel(eff.channel)
    target.set_aging(channel, target.get_aging(channel) + eff.resolve(level, copies))


def _frenzy(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    target.configure_frenzy(
        duration=eff.param("duration", level, copies),
        cooldown_fraction=eff.param("cooldown_fraction", level, copies, 1.0),
        multiplier=eff.resolve(level, copies),
    )


def _momentum(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    target.configure_momentum(eff.resolve(level, copies), eff.param("scale", level, copies))


def _spawn(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    target.set_spawn_chance(target.get_spawn_chance() + eff.resolve(level, copies))


def _bonus_ticks(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    target.set_bonus_ticks(target.get_bonus_ticks() + int(eff.resolve(level, copies)))


def _polynomial(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    degree = int(eff.param("degree", level, copies))
    target.set_polynomial_term(degree, eff.resolve(level, copies))


def _rebirth(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    target.set_rebirth_multiplier(target.get_rebirth_multiplier() * eff.resolve(level, copies))


def _offline(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    target.simulate_offline(int(eff.resolve(level, copies)))


def _custom(eff: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    if eff.fn is not None:
        eff.fn(target, level, copies)


_HANDLERS = {
    EffectKind.ADD_RESOURCE_PER_SECOND: _add_rate("resource_per_second"),
    EffectKind.ADD_BONUS_RESOURCE_PER_SECOND: _add_rate("bonus_resource_per_second"),
    EffectKind.ADD_RESOURCE_PER_CLICK: _add_rate("base_resource_per_click"),
    EffectKind.ADD_BONUS_RESOURCE_PER_CLICK: _add_rate("bonus_resource_per_click"),
    EffectKind.ADD_CLICK_POWER: _add_click_power,
    EffectKind.ADD_COEFFICIENT: _add_coefficient,
    EffectKind.ADD_AGING: _add_aging,
    EffectKind.CONFIGURE_FRENZY: _frenzy,
    EffectKind.CONFIGURE_MOMENTUM: _momentum,
    EffectKind.ADD_SPAWN_CHANCE: _spawn,
    EffectKind.ADD_BONUS_TICKS: _bonus_ticks,
    EffectKind.SET_POLYNOMIAL_TERM: _polynomial,
    EffectKind.MULTIPLY_REBIRTH: _rebirth,
    EffectKind.SIMULATE_OFFLINE: _offline,
    EffectKind.CUSTOM: _custom,
}


def apply_effect(effect: EffectDef, target: EffectTarget, level: int, copies: int) -> None:
    """Apply one effect for a modifier at *level* with *copies* bought this run."""
    _HANDLERS[effect.kind](effect, target, level, copies)


def apply_effects(effects: list[EffectDef], target: EffectTarget, level: int, copies: int) -> None:
    for eff in effects:
        apply_effect(eff, target, level, copies)
