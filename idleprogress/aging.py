from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from idleprogress._types import clamp_finite, finite_or
from idleprogress.state import (
    CLICK_POWER_FLOOR,
    CURRENCY_POWER_FLOOR,
    RPS_POWER_FLOOR,
)

if TYPE_CHECKING:
    from idleprogress.state import RunState


class AgingChannel(Enum):
    CLICK = "click"
    RPS = "rps"
    CURRENCY = "currency"


@dataclass(frozen=True)
class _ChannelFields:
    power: str
    aging: str
    floor: float


_FIELDS: dict[AgingChannel, _ChannelFields] = {
    AgingChannel.CLICK: _ChannelFields("click_power", "click_aging", CLICK_POWER_FLOOR),
    AgingChannel.RPS: _ChannelFields("rps_power", "rps_aging", RPS_POWER_FLOOR),
    AgingChannel.CURRENCY: _ChannelFields(
        "currency_power", "currency_aging", CURRENCY_POWER_FLOOR
    ),
}


def clamped_power_sum(power0: float, aging: float, seconds: int, floor: float) -> float:
    """Sum of ``max(floor, power0 + aging * k)`` for k = 1..seconds.

    Matches stepping ``p = max(floor, p + aging)`` *seconds* times from a
    starting power that is already at or above *floor*.
    """
    if seconds <= 0:
        return 0.0
    p0 = max(floor, power0)
    n = seconds
    if aging >= 0:
        return clamp_finite(n * p0 + aging * n * (n + 1) / 2.0)
    ratio = (p0 - floor) / -aging
    above = n if not math.isfinite(ratio) else min(n, math.floor(ratio))
    total = above * p0 + aging * above * (above + 1) / 2.0 + (n - above) * floor
    return clamp_finite(total)


def power_after(power0: float, aging: float, seconds: int, floor: float) -> float:
    """Power value after *seconds* clamped steps."""
    if seconds <= 0:
        return max(floor, power0)
    return clamp_finite(max(floor, max(floor, power0) + aging * seconds), floor)


class AgingPowerTracker:
    """Reads and advances the three aging powers stored on a RunState."""

    def __init__(self, run: RunState) -> None:
        self.run = run

    def power(self, channel: AgingChannel) -> float:
        return getattr(self.run, _FIELDS[channel].power)

    def aging(self, channel: AgingChannel) -> float:
        return finite_or(getattr(self.run, _FIELDS[channel].aging), 0.0)

    def floor(self, channel: AgingChannel) -> float:
        return _FIELDS[channel].floor

    def advance(self) -> None:
        """One tick: every power moves by its delta, then clamps to its floor."""
        for channel, cf in _FIELDS.items():
            current = finite_or(getattr(self.run, cf.power), cf.floor)
            stepped = max(cf.floor, current + self.aging(channel))
            setattr(self.run, cf.power, clamp_finite(stepped, cf.floor))

    def sum_over(self, channel: AgingChannel, seconds: int, offset: int = 0) -> float:
        """Sum of the power over ticks ``offset+1 .. offset+seconds``."""
        if seconds <= 0:
            return 0.0
        p0 = finite_or(self.power(channel), self.floor(channel))
        a = self.aging(channel)
        f = self.floor(channel)
        return clamped_power_sum(p0, a, offset + seconds, f) - clamped_power_sum(
            p0, a, offset, f
        )

    def final_after(self, channel: AgingChannel, seconds: int) -> float:
        p0 = finite_or(self.power(channel), self.floor(channel))
        return power_after(p0, self.aging(channel), seconds, self.floor(channel))

    def advance_by(self, seconds: int) -> None:
        """Jump every power to its value after *seconds* ticks."""
        if seconds <= 0:
            return
        finals = {ch: self.final_after(ch, seconds) for ch in AgingChannel}
        for channel, value in finals.items():
            setattr(self.run, _FIELDS[channel].power, value)
