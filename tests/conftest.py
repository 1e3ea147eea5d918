from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable when the package is not installed
ROOT = TESTS_DIR.parent
for extra in (ROOT / "src",):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import make_question  # noqa: E402
from quiz_utils.core.logging import LOGGER_NAME  # noqa: E402
from quiz_utils.quizzer.models import Question  # noqa: E402


@pytest.fixture
def question() -> Callable[..., Question]:
    """Build a question with overridable fields."""

    return make_question


@pytest.fixture
def workspace_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the workspace env var at a per-test directory."""

    home = tmp_path / "quiz-home"
    monkeypatch.setenv("QUIZ_UTILS_DATA_HOME", str(home))
    monkeypatch.delenv("QUIZ_UTILS_CONFIG", raising=False)
    monkeypatch.delenv("QUIZ_UTILS_USER_ID", raising=False)
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
