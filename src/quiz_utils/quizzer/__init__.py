from ._main import build_arg_parser
from .controller import SessionController
from .errors import (
    AggregationError,
    FetchError,
    InvalidRecoveryError,
    InvalidSessionError,
    PersistenceError,
    QuizError,
    SessionAbandonedError,
)
from .models import DEFAULT_TIERS, AnsweredQuestion, Question, QuizResult
from .play import parse_play_command, play_session
from .profile import (
    JsonProfileStore,
    MemoryProfileStore,
    ProfileAggregator,
    ProfileStats,
    next_increment,
)
from .session import QuizSession
from .source import (
    FileQuestionSource,
    HttpQuestionSource,
    QuestionSource,
    parse_questions,
)
from .store import JsonFileSessionStore, MemorySessionStore, SessionStore

__all__ = [
    "build_arg_parser",
    "SessionController",
    "QuizError",
    "FetchError",
    "PersistenceError",
    "AggregationError",
    "InvalidRecoveryError",
    "InvalidSessionError",
    "SessionAbandonedError",
    "DEFAULT_TIERS",
    "Question",
    "AnsweredQuestion",
    "QuizResult",
    "parse_play_command",
    "play_session",
    "ProfileAggregator",
    "ProfileStats",
    "JsonProfileStore",
    "MemoryProfileStore",
    "next_increment",
    "QuizSession",
    "QuestionSource",
    "HttpQuestionSource",
    "FileQuestionSource",
    "parse_questions",
    "SessionStore",
    "JsonFileSessionStore",
    "MemorySessionStore",
]
