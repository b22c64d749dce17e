"""Tests for cli module."""
import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from idleprogress.cli import build_parser, load_game, main


def test_parser_subcommands():
    args = build_parser().parse_args(["simulate", "examples.gold_rush", "--cps", "2.5"])
    assert args.command == "simulate"
    assert args.cps == 2.5
    assert args.duration == 3600


def test_load_game():
    assert load_game("examples.gold_rush").config.name == "Gold Rush"


def test_load_game_without_define_game():
    with pytest.raises(SystemExit):
        load_game("idleprogress.formatting")


def test_simulate(capsys, tmp_path):
    save = tmp_path / "save.json"
    main(["simulate", "examples.gold_rush", "--duration", "60", "--cps", "5", "--save", str(save)])
    out = capsys.readouterr().out
    assert "Gold Rush Simulation Report" in out
    assert json.loads(save.read_text(encoding="utf-8"))["tick_number"] == 60


def test_offline(capsys, tmp_path):
    save = tmp_path / "save.json"
    main(["offline", "examples.gold_rush", "--seconds", "120", "--save", str(save)])
    out = capsys.readouterr().out
    assert "Offline for 2m 00s in gold mode" in out
    assert json.loads(save.read_text(encoding="utf-8"))["last_active_time"] == 120.0


def test_offline_short_gap(capsys):
    main(["offline", "examples.gold_rush", "--seconds", "30"])
    assert "No catch-up" in capsys.readouterr().out


def test_offline_rejects_non_positive():
    with pytest.raises(SystemExit):
        main(["offline", "examples.gold_rush", "--seconds", "0"])
