from __future__ import annotations

import json

import pytest
from rich.console import Console

from quiz_utils.quizzer import _main


def make_provider(commands: list[str]):
    iterator = iter(commands)

    def _provider() -> str:
        return next(iterator)

    return _provider


def _play(tier: str, commands: list[str]):
    console = Console(record=True, width=80, force_terminal=True)
    args = _main.build_arg_parser().parse_args(["play", tier])
    code = _main._cmd_play(
        args, console=console, input_provider=make_provider(commands)
    )
    return code, console.export_text()


def test_build_arg_parser_rejects_unknown_tier() -> None:
    with pytest.raises(SystemExit):
        _main.build_arg_parser().parse_args(["play", "extreme"])


def test_init_creates_workspace_and_sample_bank(workspace_dir, capsys) -> None:
    assert _main.main(["init", "--sample"]) == 0

    out = capsys.readouterr().out
    assert "Workspace ready" in out
    assert "(created)" in out
    assert "(seeded)" in out
    bank = workspace_dir / "banks" / "questions.jsonl"
    lines = bank.read_text(encoding="utf-8").strip().splitlines()
    tiers = {json.loads(line)["difficulty"] for line in lines}
    assert tiers == {"easy", "medium", "hard"}

    assert _main.main(["init", "--sample"]) == 0
    out = capsys.readouterr().out
    assert "(exists)" in out


def test_config_commands(workspace_dir, capsys) -> None:
    assert _main.main(["config", "path"]) == 0
    path = capsys.readouterr().out.strip()
    assert path.endswith("quiz.toml")

    assert _main.main(["config", "init"]) == 0
    assert "Wrote config template" in capsys.readouterr().out
    assert _main.main(["config", "init"]) == 2
    assert "already exists" in capsys.readouterr().err

    assert _main.main(["config", "validate"]) == 0
    out = capsys.readouterr().out
    assert "Config OK" in out
    assert "user: (anonymous)" in out


def test_config_validate_reports_errors(workspace_dir, tmp_path, capsys):
    bad = tmp_path / "bad.toml"
    bad.write_text("[source]\nkind = 'smoke'\n", encoding="utf-8")

    assert _main.main(["config", "validate", "--config", str(bad)]) == 2
    assert "Invalid config" in capsys.readouterr().err


def test_play_full_game_updates_stats(workspace_dir, monkeypatch, capsys):
    monkeypatch.setenv("QUIZ_UTILS_USER_ID", "player-1")
    _main.main(["init", "--sample"])
    capsys.readouterr()

    code, output = _play("easy", ["2", "n", "2", "n", "1", "n"])

    assert code == 0
    assert "Quiz Complete" in output
    assert "2 / 3" in output
    assert not (workspace_dir / "sessions" / "current.json").exists()
    assert (workspace_dir / "logs" / "quiz.log").exists()

    assert _main.main(["stats"]) == 0
    out = capsys.readouterr().out
    assert "Profile: player-1" in out
    assert "2.00" in out


def test_play_resume_status_and_reset(workspace_dir, capsys) -> None:
    _main.main(["init", "--sample"])
    capsys.readouterr()

    code, _ = _play("medium", ["2", "n", "q"])
    assert code == 0
    assert (workspace_dir / "sessions" / "current.json").exists()

    assert _main.main(["status"]) == 0
    out = capsys.readouterr().out
    assert "Quiz in progress" in out
    assert "2 / 3" in out

    code, output = _play("medium", ["q"])
    assert code == 0
    assert "Resuming medium quiz at question 2/3." in output

    assert _main.main(["reset"]) == 0
    assert "Cleared saved quiz session." in capsys.readouterr().out
    assert _main.main(["status"]) == 0
    assert "No quiz in progress." in capsys.readouterr().out


def test_play_reports_missing_bank(workspace_dir) -> None:
    code, output = _play("hard", [])

    assert code == 1
    assert "Could not load questions:" in output


def test_status_reports_corrupt_snapshot(workspace_dir, capsys) -> None:
    sessions = workspace_dir / "sessions"
    sessions.mkdir(parents=True)
    (sessions / "current.json").write_text("{broken", encoding="utf-8")

    assert _main.main(["status"]) == 1
    assert "unreadable" in capsys.readouterr().out


def test_stats_requires_user(workspace_dir, capsys) -> None:
    assert _main.main(["stats"]) == 2
    assert "No user configured" in capsys.readouterr().err


def test_stats_for_new_user(workspace_dir, capsys) -> None:
    assert _main.main(["stats", "--user", "fresh"]) == 0
    out = capsys.readouterr().out
    assert "Games played" in out
    assert "0.00" in out
