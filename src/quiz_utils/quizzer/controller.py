"""Orchestrates quiz sessions across the question source, store and profiles.

The controller decides whether a start request resumes the persisted session
or fetches a fresh question set, writes a snapshot after every mutating
transition, and runs the completion sequence once a session finishes.
Collaborator failures degrade instead of aborting: persistence and profile
errors are logged while the session carries on in memory. Only a failed
fetch (or an empty question set) prevents a session from starting.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .errors import (
    AggregationError,
    InvalidRecoveryError,
    PersistenceError,
    QuizError,
    SessionAbandonedError,
)
from .models import QuizResult
from .profile import ProfileAggregator, next_increment
from .session import QuizSession
from .source import QuestionSource
from .store import SessionStore

__all__ = ["ResultHandler", "SessionController"]

ResultHandler = Callable[[QuizResult], None]


class SessionController:
    """Single-player session lifecycle bound to injected collaborators."""

    def __init__(
        self,
        source: QuestionSource,
        store: SessionStore,
        profiles: ProfileAggregator,
        *,
        user_id: Optional[str] = None,
        on_result: Optional[ResultHandler] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._source = source
        self._store = store
        self._profiles = profiles
        self._user_id = user_id or None
        self._on_result = on_result
        self._logger = logger or logging.getLogger(__name__)
        self._session: QuizSession | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._generation = 0
        self._resumed = False

    @property
    def session(self) -> QuizSession | None:
        return self._session

    @property
    def resumed(self) -> bool:
        """Whether the most recent start picked up a persisted session."""

        return self._resumed

    async def start(self, tier: str) -> QuizSession:
        """Resume the persisted session for ``tier`` or fetch a new one.

        Raises :class:`FetchError` when the source fails,
        :class:`InvalidSessionError` when it returns no questions, and
        :class:`SessionAbandonedError` when :meth:`abandon` was called while
        the fetch was in flight.
        """

        self._detach()
        self._generation += 1
        generation = self._generation
        self._resumed = False

        session = self._resume(tier)
        if session is not None:
            self._resumed = True
            self._attach(session)
            self._logger.info(
                "Resumed quiz session",
                extra={
                    "tier": tier,
                    "position": session.position,
                    "total": session.total,
                    "score": session.score,
                },
            )
            return session

        self._clear_store()
        questions = await self._source.fetch(tier)
        if generation != self._generation:
            self._logger.info(
                "Discarded questions fetched for an abandoned session",
                extra={"tier": tier},
            )
            raise SessionAbandonedError(
                f"Session start for tier '{tier}' was abandoned."
            )
        session = QuizSession.fresh(questions, tier)
        self._attach(session)
        self._persist(session)
        self._logger.info(
            "Started quiz session",
            extra={"tier": tier, "total": session.total},
        )
        return session

    def answer(self, selected_index: int) -> bool | None:
        """Answer the current question; ``None`` means the call was ignored."""

        return self._require_session().answer(selected_index)

    async def advance(self) -> QuizResult | None:
        """Advance the session, returning the result once it completes."""

        session = self._require_session()
        if session.advance() != "completed":
            return None
        return await self._complete(session)

    def abandon(self) -> None:
        """Detach the active session, leaving its snapshot resumable."""

        self._detach()
        self._generation += 1

    def reset(self) -> None:
        """Abandon the active session and discard its snapshot."""

        self.abandon()
        self._clear_store()

    async def _complete(self, session: QuizSession) -> QuizResult | None:
        """Run the completion sequence for a session that just finished.

        The persisted snapshot is deleted first, ahead of the profile
        update rather than after it, so no await separates the completing
        transition from the deletion. A player who leaves while the profile
        calls are pending therefore cannot resume the finished session and
        have its score aggregated a second time. The profile update then
        runs best-effort, and the result is handed off only if the session
        is still the active one.
        """

        generation = self._generation
        result = session.result()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        # Cleared before any await: a finished session is never resumable.
        self._clear_store()

        await self._aggregate(result)

        if generation != self._generation or self._session is not session:
            self._logger.info(
                "Session was abandoned during completion",
                extra={"tier": session.difficulty},
            )
            return None
        self._logger.info(
            "Completed quiz session",
            extra={
                "tier": session.difficulty,
                "score": result.score,
                "total": result.total,
            },
        )
        if self._on_result is not None:
            self._on_result(result)
        return result

    async def _aggregate(self, result: QuizResult) -> None:
        user_id = self._user_id
        if not user_id:
            self._logger.debug("No user identity; skipped profile update")
            return
        try:
            stats = await self._profiles.read_stats(user_id)
            increment = next_increment(stats, result.score)
            await self._profiles.apply_increment(user_id, increment)
        except AggregationError:
            self._logger.warning(
                "Failed to update profile stats",
                extra={"user_id": user_id, "score": result.score},
                exc_info=True,
            )
            return
        self._logger.info(
            "Updated profile stats",
            extra={
                "user_id": user_id,
                "average_score": increment.new_average,
            },
        )

    def _resume(self, tier: str) -> QuizSession | None:
        try:
            snapshot = self._store.get()
        except PersistenceError:
            self._logger.warning(
                "Could not read persisted session", exc_info=True
            )
            return None
        if snapshot is None:
            return None
        try:
            session = QuizSession.recover(snapshot, tier)
        except InvalidRecoveryError as exc:
            self._logger.warning(
                "Discarded malformed session snapshot",
                extra={"reason": str(exc)},
            )
            return None
        if session is None:
            self._logger.info(
                "Discarded session snapshot for another tier",
                extra={
                    "requested": tier,
                    "stored": snapshot.get("difficulty"),
                },
            )
        return session

    def _attach(self, session: QuizSession) -> None:
        self._session = session
        self._unsubscribe = session.subscribe(self._persist)

    def _detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._session = None

    def _persist(self, session: QuizSession) -> None:
        try:
            self._store.put(session.to_snapshot())
        except PersistenceError:
            self._logger.warning(
                "Could not persist session snapshot", exc_info=True
            )

    def _clear_store(self) -> None:
        try:
            self._store.clear()
        except PersistenceError:
            self._logger.warning(
                "Could not clear session snapshot", exc_info=True
            )

    def _require_session(self) -> QuizSession:
        if self._session is None:
            raise QuizError("No quiz session has been started.")
        return self._session
