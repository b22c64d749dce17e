# idleprogress — Idle Game Progression Engine & Offline Catch-up Simulation

from idleprogress.modes import GameMode, Tactic, parse_mode, parse_tactic
from idleprogress.rng import RandomSource, SeededRandom, ScriptedRandom
from idleprogress.cost_scaling import CostScaling
from idleprogress.effect import EffectKind, EffectDef, Effect, EffectTarget, StateEffectTarget
from idleprogress.polynomial import AntimatterPolynomial
from idleprogress.aging import AgingChannel, AgingPowerTracker
from idleprogress.modifier import ModifierDef, ModifierOwnership, ModifierStatus
from idleprogress.achievement import (
    Achievement,
    AchievementDef,
    AchievementEvaluator,
    AchievementUnlock,
    default_achievements,
)
from idleprogress.monster import (
    CombatOutcome,
    MonsterClassInfo,
    MonsterCombatResolver,
    MonsterReward,
    default_monster_classes,
)
from idleprogress.state import EngineState, MetaState, MonsterState, RunState
from idleprogress.definition import GameConfig, GameDefinition
from idleprogress.catchup import CatchupResult, OfflineCatchupIntegrator
from idleprogress.scheduler import TickReport, TickScheduler
from idleprogress.rebirth import RebirthController, RebirthPreview, RebirthResult
from idleprogress.storage import KeyValueStore, MemoryStore, JsonFileStore
from idleprogress.persistence import load_state, save_state
from idleprogress.runtime import GameRuntime
from idleprogress.metrics import MetricsCollector
from idleprogress.simulation import Simulation
from idleprogress.report import SimulationReport, build_report
from idleprogress.formatting import display_number, format_text_report
from idleprogress.logging_config import configure_logging

__all__ = [
    # Modes
    "GameMode",
    "Tactic",
    "parse_mode",
    "parse_tactic",
    # Randomness
    "RandomSource",
    "SeededRandom",
    "ScriptedRandom",
    # Cost
    "CostScaling",
    # Effects
    "EffectKind",
    "EffectDef",
    "Effect",
    "EffectTarget",
    "StateEffectTarget",
    # Progression components
    "AntimatterPolynomial",
    "AgingChannel",
    "AgingPowerTracker",
    "ModifierDef",
    "ModifierOwnership",
    "ModifierStatus",
    "Achievement",
    "AchievementDef",
    "AchievementEvaluator",
    "AchievementUnlock",
    "default_achievements",
    "CombatOutcome",
    "MonsterClassInfo",
    "MonsterCombatResolver",
    "MonsterReward",
    "default_monster_classes",
    # State
    "EngineState",
    "MetaState",
    "MonsterState",
    "RunState",
    # Definition
    "GameConfig",
    "GameDefinition",
    # Time
    "CatchupResult",
    "OfflineCatchupIntegrator",
    "TickReport",
    "TickScheduler",
    # Rebirth
    "RebirthController",
    "RebirthPreview",
    "RebirthResult",
    # Persistence
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "load_state",
    "save_state",
    # Runtime
    "GameRuntime",
    # Simulation
    "MetricsCollector",
    "Simulation",
    "SimulationReport",
    "build_report",
    # Formatting
    "display_number",
    "format_text_report",
    "configure_logging",
]
