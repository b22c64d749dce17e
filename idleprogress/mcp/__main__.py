"""Entry point: python -m idleprogress.mcp <game_module> [--save FILE]"""

from __future__ import annotations

import argparse
import sys


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m idleprogress.mcp",
        description="Serve an idleprogress game over MCP (stdio transport)",
    )
    parser.add_argument("module", help="Python module with define_game(), e.g. examples.gold_rush")
    parser.add_argument("--save", default=None, help="JSON save file to resume from and write to")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    # stdout carries the transport, so logs go to stderr
    from idleprogress.logging_config import configure_logging

    configure_logging(level=args.log_level, include_mcp=True)

    # define_game() may print; keep that off the transport too
    real_stdout = sys.stdout
    sys.stdout = sys.stderr
    try:
        from idleprogress.cli import load_game

        definition = load_game(args.module)
    finally:
        sys.stdout = real_stdout

    from idleprogress.mcp.server import create_server
    from idleprogress.storage import JsonFileStore

    store = JsonFileStore(args.save) if args.save else None
    create_server(definition, store=store).run(transport="stdio")


if __name__ == "__main__":
    main()
