"""Exception hierarchy for quiz sessions and their collaborators."""

from __future__ import annotations

__all__ = [
    "QuizError",
    "FetchError",
    "PersistenceError",
    "AggregationError",
    "InvalidRecoveryError",
    "InvalidSessionError",
    "SessionAbandonedError",
]


class QuizError(RuntimeError):
    """Base class for quiz session failures."""


class FetchError(QuizError):
    """Raised when the question source is unreachable or rejects a request."""


class PersistenceError(QuizError):
    """Raised when the session store cannot be read or written."""


class AggregationError(QuizError):
    """Raised when profile stats cannot be read or updated."""


class InvalidRecoveryError(QuizError):
    """Raised when a persisted snapshot is structurally malformed."""


class InvalidSessionError(QuizError):
    """Raised when a session would be constructed in an invalid state."""


class SessionAbandonedError(QuizError):
    """Raised when a session start resolves after it was abandoned."""
