"""Configuration for the quiz command.

Settings live in a TOML file (``<workspace>/config/quiz.toml`` by default),
merged over built-in defaults and validated into frozen dataclasses. A few
values can be overridden from the environment, and a ``.env`` file in the
working directory is honoured for those overrides.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError as exc:  # pragma: no cover - should never happen
    raise RuntimeError("Python 3.11+ required for tomllib support") from exc

from dotenv import load_dotenv

from ..core import workspace as workspace_mod

__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_PATH_ENV",
    "USER_ID_ENV",
    "SOURCE_KINDS",
    "ConfigError",
    "SourceConfig",
    "ProfileConfig",
    "LoggingConfig",
    "QuizConfig",
    "LoadResult",
    "config_template",
    "default_tree",
    "load_config",
    "resolve_config_path",
    "write_template",
]

CONFIG_FILENAME = "quiz.toml"
CONFIG_PATH_ENV = "QUIZ_UTILS_CONFIG"
USER_ID_ENV = "QUIZ_UTILS_USER_ID"
SOURCE_KINDS = ("file", "http")


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class SourceConfig:
    kind: str
    base_url: str
    timeout_seconds: float
    bank: Path


@dataclass(frozen=True)
class ProfileConfig:
    user_id: Optional[str]


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class QuizConfig:
    source: SourceConfig
    profile: ProfileConfig
    logging: LoggingConfig


@dataclass(frozen=True)
class LoadResult:
    """Resolved configuration plus the workspace it was resolved against."""

    config: QuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    workspace_path: Optional[Path] = None,
    dotenv: bool = True,
) -> LoadResult:
    """Load configuration applying precedence env > TOML > defaults.

    A missing default config file is not an error; a missing file that was
    requested explicitly (flag or ``QUIZ_UTILS_CONFIG``) is.
    """

    if dotenv and env is None:
        load_dotenv()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise ConfigError(str(exc)) from exc

    path = resolve_config_path(
        explicit_path=explicit_path, env=env_map, layout=layout
    )
    tree = default_tree()
    loaded_path: Optional[Path] = None
    if path.exists():
        _merge_dict(tree, _load_toml(path))
        loaded_path = path
    elif explicit_path is not None or env_map.get(CONFIG_PATH_ENV):
        raise ConfigError(f"Config file not found: {path}")

    env_user = (env_map.get(USER_ID_ENV) or "").strip()
    if env_user:
        tree["profile"]["user_id"] = env_user

    return LoadResult(
        config=_build_config(tree, layout=layout),
        layout=layout,
        config_path=loaded_path,
    )


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    layout: workspace_mod.WorkspaceLayout | None = None,
) -> Path:
    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().resolve()
    env_override = (env_map.get(CONFIG_PATH_ENV) or "").strip()
    if env_override:
        return Path(env_override).expanduser().resolve()
    if layout is None:
        layout = workspace_mod.ensure_workspace(env=env_map)
    return layout.path_for("config") / CONFIG_FILENAME


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def config_template() -> str:
    """Return the TOML template recommended for new installs."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the default template to ``path`` unless it already exists."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    path.write_text(config_template(), encoding="utf-8")
    try:
        path.chmod(mode)
    except PermissionError:
        pass
    return path


def _load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config TOML: {exc}") from exc


def _merge_dict(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise ConfigError(f"Unknown configuration key '{dotted}'.")
        if isinstance(base[key], MutableMapping):
            if not isinstance(value, Mapping):
                raise ConfigError(
                    "Expected table for '{0}', found {1}.".format(
                        dotted, type(value).__name__
                    )
                )
            _merge_dict(base[key], value, path=f"{dotted}.")
        else:
            base[key] = value


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_positive_number(value: Any, *, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    if value <= 0:
        raise ConfigError(f"'{field}' must be greater than zero.")
    return float(value)


def _build_source(
    section: Mapping[str, Any], *, layout: workspace_mod.WorkspaceLayout
) -> SourceConfig:
    kind = _require_string(section.get("kind"), field="source.kind").lower()
    if kind not in SOURCE_KINDS:
        raise ConfigError(
            "source.kind must be one of: {0}.".format(", ".join(SOURCE_KINDS))
        )
    base_url = _require_string(
        section.get("base_url"), field="source.base_url"
    )
    if not base_url.startswith(("http://", "https://")):
        raise ConfigError(
            "source.base_url must start with http:// or https://."
        )
    timeout = _require_positive_number(
        section.get("timeout_seconds"), field="source.timeout_seconds"
    )
    bank = Path(_require_string(section.get("bank"), field="source.bank"))
    bank = bank.expanduser()
    if not bank.is_absolute():
        bank = layout.path_for("banks") / bank
    return SourceConfig(
        kind=kind,
        base_url=base_url,
        timeout_seconds=timeout,
        bank=bank,
    )


def _build_profile(section: Mapping[str, Any]) -> ProfileConfig:
    raw = section.get("user_id")
    if raw is None:
        return ProfileConfig(user_id=None)
    if not isinstance(raw, str):
        raise ConfigError("'profile.user_id' must be a string.")
    return ProfileConfig(user_id=raw.strip() or None)


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _require_string(section.get("level"), field="logging.level").upper()
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if level not in allowed:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingConfig(level=level, verbose=verbose)


def _build_config(
    tree: Mapping[str, Any], *, layout: workspace_mod.WorkspaceLayout
) -> QuizConfig:
    return QuizConfig(
        source=_build_source(tree["source"], layout=layout),
        profile=_build_profile(tree["profile"]),
        logging=_build_logging(tree["logging"]),
    )


_DEFAULTS: Dict[str, Any] = {
    "source": {
        "kind": "file",
        "base_url": "http://localhost:3000",
        "timeout_seconds": 10,
        "bank": "questions.jsonl",
    },
    "profile": {
        "user_id": "",
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# Quiz configuration

[source]
# Where questions come from: "file" (local JSONL bank) or "http"
kind = "file"
# Question service root; questions are fetched from /api/questions/<tier>
base_url = "http://localhost:3000"
timeout_seconds = 10
# JSONL question bank, relative to <workspace>/banks unless absolute
bank = "questions.jsonl"

[profile]
# Leave empty to play anonymously (no cumulative stats are recorded).
# QUIZ_UTILS_USER_ID overrides this value.
user_id = ""

[logging]
# DEBUG, INFO, WARNING, ERROR, or CRITICAL
level = "INFO"
# Mirror log records to stderr
verbose = false
"""
