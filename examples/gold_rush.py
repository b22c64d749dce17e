"""Gold Rush: a small three-mode game used by the integration tests and the CLI."""
from __future__ import annotations

from idleprogress.aging import AgingChannel
from idleprogress.cost_scaling import CostScaling
from idleprogress.definition import GameConfig, GameDefinition
from idleprogress.effect import Effect, EffectKind
from idleprogress.modes import GameMode
from idleprogress.modifier import ModifierDef


def _lux_aurea(n: int) -> ModifierDef:
    # Rank n generators: level * 10^(n-1) resource per second for each copy.
    return ModifierDef(
        id=f"lux_aurea_{n}",
        name=f"Lux Aurea {n}",
        rank=n,
        pack="lux_aurea",
        effects=[
            Effect.per_level(EffectKind.ADD_RESOURCE_PER_SECOND, 10 ** (n - 1)),
        ],
    )


def define_game() -> GameDefinition:
    modifiers = [_lux_aurea(n) for n in range(1, 11)]
    modifiers += [
        ModifierDef(
            id="vita_orum_1",
            name="Gilded Pick",
            rank=1,
            pack="vita_orum",
            description="Each copy adds level squared to the click value.",
            effects=[Effect.level_squared(EffectKind.ADD_RESOURCE_PER_CLICK)],
        ),
        ModifierDef(
            id="vita_orum_2",
            name="Rouse",
            rank=3,
            pack="vita_orum",
            description="Arms a frenzy: x(1 + level) income for 30s, 60s cooldown.",
            effects=[
                Effect.frenzy(
                    multiplier=lambda level, _copies: 1.0 + level,
                    duration=30.0,
                    cooldown_fraction=2.0,
                ),
            ],
            max_copies=1,
        ),
        ModifierDef(
            id="vita_orum_3",
            name="Second Wind",
            rank=2,
            pack="vita_orum",
            effects=[
                Effect.coefficient("rps_click", lambda level, _copies: 0.01 * level),
                Effect.momentum(cap=lambda level, _copies: level, scale=0.05),
            ],
        ),
        ModifierDef(
            id="tempus_1",
            name="Patience",
            rank=2,
            pack="tempus",
            description="Production power grows a little every second.",
            effects=[Effect.aging(AgingChannel.RPS, lambda level, _copies: 0.001 * level)],
        ),
        ModifierDef(
            id="tempus_2",
            name="Interest",
            rank=4,
            pack="tempus",
            effects=[
                Effect.aging(AgingChannel.CURRENCY, lambda level, _copies: 0.0001 * level),
            ],
        ),
        ModifierDef(
            id="tempus_3",
            name="Nap",
            rank=5,
            pack="tempus",
            description="Grants ten minutes of offline progress when bought.",
            effects=[Effect.offline(600)],
            cost_scaling=CostScaling.exponential(1e5, 10.0),
        ),
        ModifierDef(
            id="fortuna_1",
            name="Glint",
            rank=2,
            pack="fortuna",
            effects=[
                Effect.flat(EffectKind.ADD_SPAWN_CHANCE, 0.05),
            ],
            max_copies=20,
        ),
        ModifierDef(
            id="materia_1",
            name="Spark",
            rank=1,
            pack="materia",
            description="Antimatter: linear term of the growth polynomial.",
            effects=[Effect.polynomial_term(1, lambda level, copies: level * copies)],
        ),
        ModifierDef(
            id="materia_2",
            name="Cascade",
            rank=2,
            pack="materia",
            effects=[Effect.polynomial_term(2, lambda level, copies: level * copies)],
        ),
    ]

    return GameDefinition(
        config=GameConfig(
            name="Gold Rush",
            catchup_threshold=60,
            seed=7,
        ),
        modifiers=modifiers,
        starting_mode=GameMode.MINING,
        starting_modifiers=["lux_aurea_1", "vita_orum_1"],
    )
