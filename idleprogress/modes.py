from __future__ import annotations

from enum import Enum


class GameMode(Enum):
    MINING = "gold"
    ANTIMATTER = "antimatter"
    MONSTER = "monster"

    @property
    def key_prefix(self) -> str:
        return _PREFIXES[self]


_PREFIXES: dict[GameMode, str] = {
    GameMode.MINING: "",
    GameMode.ANTIMATTER: "antimatter_",
    GameMode.MONSTER: "monster_",
}

# Selection strings accepted from hosts and older saves.
_ALIASES: dict[str, GameMode] = {
    "gold": GameMode.MINING,
    "mine_gold": GameMode.MINING,
    "mining": GameMode.MINING,
    "antimatter": GameMode.ANTIMATTER,
    "create_antimatter": GameMode.ANTIMATTER,
    "monster": GameMode.MONSTER,
    "monster_hunting": GameMode.MONSTER,
}


class Tactic(Enum):
    """Monster attack selection."""

    HEAD = "head"
    BODY = "body"
    HYDE = "hyde"
    AURA = "aura"


def parse_tactic(raw: str | Tactic | None) -> Tactic:
    """Unknown or empty selections fall back to HEAD."""
    if isinstance(raw, Tactic):
        return raw
    try:
        return Tactic((raw or "").strip().lower())
    except ValueError:
        return Tactic.HEAD


def parse_mode(raw: str | GameMode | None, default: GameMode = GameMode.MINING) -> GameMode:
    """Map a stored or user-supplied mode string to a GameMode."""
    if isinstance(raw, GameMode):
        return raw
    if not raw:
        return default
    return _ALIASES.get(raw.strip().lower(), default)


def mode_key(base: str, mode: GameMode) -> str:
    """Namespace a store key for *mode*."""
    return mode.key_prefix + base


def monster_key(base: str) -> str:
    """Monster keys carry the monster prefix regardless of the active mode."""
    return GameMode.MONSTER.key_prefix + base
