from __future__ import annotations

import argparse
import importlib
import logging
import sys

from idleprogress.definition import GameDefinition
from idleprogress.formatting import display_number, format_duration, format_text_report
from idleprogress.logging_config import configure_logging
from idleprogress.modes import GameMode, parse_mode
from idleprogress.persistence import load_state
from idleprogress.runtime import GameRuntime
from idleprogress.simulation import Simulation
from idleprogress.storage import JsonFileStore, MemoryStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idleprogress",
        description="idleprogress: idle game progression engine CLI",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: $IDLEPROGRESS_LOG_LEVEL or INFO)",
    )
    sub = parser.add_subparsers(dest="command")

    sim = sub.add_parser("simulate", help="Run a headless simulation")
    sim.add_argument("game_module", help="Python module with define_game()")
    sim.add_argument("--duration", type=int, default=3600, help="Simulated seconds")
    sim.add_argument("--cps", type=float, default=0.0, help="Clicks per second")
    sim.add_argument(
        "--rebirth-every", type=int, default=None, help="Rebirth interval (s)"
    )
    sim.add_argument(
        "--acquire-all",
        action="store_true",
        help="Own every modifier from the start",
    )
    sim.add_argument("--no-frenzy", action="store_true", help="Never activate frenzy")
    sim.add_argument("--seed", type=int, default=None, help="Random seed")
    sim.add_argument("--save", default=None, help="JSON save file to write")
    sim.add_argument("--plot", default=None, help="Plot output path (PNG)")

    off = sub.add_parser("offline", help="Apply an offline gap to a saved game")
    off.add_argument("game_module", help="Python module with define_game()")
    off.add_argument("--seconds", type=int, required=True, help="Offline seconds")
    off.add_argument("--save", default=None, help="JSON save file to load and update")
    off.add_argument(
        "--mode",
        default=None,
        choices=[m.value for m in GameMode],
        help="Mode to resume in (default: stored mode)",
    )

    return parser


def load_game(module_path: str) -> GameDefinition:
    """Import module and call define_game()."""
    mod = importlib.import_module(module_path)
    if not hasattr(mod, "define_game"):
        print(f"Error: module {module_path!r} has no define_game() function")
        sys.exit(1)
    return mod.define_game()


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    definition = load_game(args.game_module)

    if args.command == "simulate":
        _run_simulate(definition, args)
    elif args.command == "offline":
        _run_offline(definition, args)


def _run_simulate(definition: GameDefinition, args) -> None:
    store = JsonFileStore(args.save) if args.save else MemoryStore()
    sim = Simulation(
        definition=definition,
        duration=args.duration,
        clicks_per_second=args.cps,
        rebirth_interval=args.rebirth_every,
        seed=args.seed,
        acquire_all=args.acquire_all,
        auto_frenzy=not args.no_frenzy,
        store=store,
    )
    report = sim.run()
    print(format_text_report(report))

    if args.save:
        sim.runtime.save()
        print(f"\nGame saved to {args.save}")

    if args.plot:
        from idleprogress.visualization import plot_simulation
        plot_simulation(report, args.plot)
        print(f"\nPlot saved to {args.plot}")


def _run_offline(definition: GameDefinition, args) -> None:
    if args.seconds <= 0:
        print("Error: --seconds must be positive")
        sys.exit(1)

    store = JsonFileStore(args.save) if args.save else MemoryStore()
    mode = parse_mode(args.mode) if args.mode else None
    state = load_state(store, mode) if store.keys() else None
    runtime = GameRuntime(definition, store=store, state=state, clock=lambda: 0.0)

    # The gap is measured on the saved game's own timeline.
    state = runtime.get_state()
    resource_before = state.run.resource
    result = runtime.resume(now=state.now + args.seconds)
    if not result.applied:
        print(f"No catch-up: gaps of {definition.config.catchup_threshold}s or less are ignored")
        return

    print(f"Offline for {format_duration(result.seconds)} in {state.mode.value} mode")
    print(f"  Resource: +{display_number(state.run.resource - resource_before)}")
    print(f"  Frenzy seconds: {result.frenzy_seconds}")
    print(f"  Currency: +{display_number(result.currency_gained)}")
    if result.dark_matter_gained:
        print(f"  Pending dark matter: +{display_number(result.dark_matter_gained)}")
    if result.kills:
        print(f"  Monsters defeated: {result.kills}")

    if args.save:
        runtime.save()
        logger.info("Saved %s", args.save)
