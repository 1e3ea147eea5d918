from __future__ import annotations

from pathlib import Path

import pytest

from quiz_utils.quizzer import config as config_mod


def _env(tmp_path: Path, **extra: str) -> dict:
    env = {"QUIZ_UTILS_DATA_HOME": str(tmp_path / "home")}
    env.update(extra)
    return env


def test_defaults_without_config_file(tmp_path) -> None:
    result = config_mod.load_config(env=_env(tmp_path))

    assert result.config_path is None
    source = result.config.source
    assert source.kind == "file"
    assert source.timeout_seconds == 10.0
    assert source.bank == result.layout.path_for("banks") / "questions.jsonl"
    assert result.config.profile.user_id is None
    assert result.config.logging.level == "INFO"


def test_template_round_trips(tmp_path) -> None:
    env = _env(tmp_path)
    path = config_mod.resolve_config_path(env=env)
    config_mod.write_template(path)

    result = config_mod.load_config(env=env)

    assert result.config_path == path
    assert result.config.source.base_url == "http://localhost:3000"
    with pytest.raises(config_mod.ConfigError, match="already exists"):
        config_mod.write_template(path)
    config_mod.write_template(path, overwrite=True)


def test_toml_overrides_and_env_user(tmp_path) -> None:
    cfg = tmp_path / "custom.toml"
    cfg.write_text(
        "\n".join(
            [
                "[source]",
                'kind = "HTTP"',
                'base_url = "https://quiz.example.com"',
                "timeout_seconds = 2.5",
                f'bank = "{tmp_path / "abs.jsonl"}"',
                "[profile]",
                'user_id = "from-file"',
                "[logging]",
                'level = "debug"',
                "verbose = true",
            ]
        ),
        encoding="utf-8",
    )
    env = _env(tmp_path, QUIZ_UTILS_CONFIG=str(cfg), QUIZ_UTILS_USER_ID="env")

    config = config_mod.load_config(env=env).config

    assert config.source.kind == "http"
    assert config.source.base_url == "https://quiz.example.com"
    assert config.source.timeout_seconds == 2.5
    assert config.source.bank == tmp_path / "abs.jsonl"
    assert config.profile.user_id == "env"
    assert config.logging.level == "DEBUG"
    assert config.logging.verbose is True


def test_missing_explicit_config_is_an_error(tmp_path) -> None:
    with pytest.raises(config_mod.ConfigError, match="not found"):
        config_mod.load_config(
            explicit_path=tmp_path / "nope.toml", env=_env(tmp_path)
        )


@pytest.mark.parametrize(
    "body, message",
    [
        ("[source]\nkind = 'ftp'\n", "source.kind"),
        ("[source]\nbase_url = 'quiz.test'\n", "http"),
        ("[source]\ntimeout_seconds = 0\n", "greater than zero"),
        ("[source]\ntimeout_seconds = true\n", "number"),
        ("[profile]\nuser_id = 5\n", "string"),
        ("[logging]\nlevel = 'LOUD'\n", "logging.level"),
        ("[logging]\nverbose = 'yes'\n", "boolean"),
        ("[extra]\nkey = 1\n", "Unknown configuration key 'extra'"),
        ("source = 1\n", "Expected table"),
        ("[source\n", "parse"),
    ],
)
def test_invalid_config_values(tmp_path, body, message) -> None:
    cfg = tmp_path / "bad.toml"
    cfg.write_text(body, encoding="utf-8")

    with pytest.raises(config_mod.ConfigError, match=message):
        config_mod.load_config(explicit_path=cfg, env=_env(tmp_path))


def test_default_tree_is_a_copy() -> None:
    tree = config_mod.default_tree()
    tree["source"]["kind"] = "http"
    assert config_mod.default_tree()["source"]["kind"] == "file"
