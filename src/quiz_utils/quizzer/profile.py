"""Cumulative player statistics updated once per completed quiz."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Protocol

from ..core.files import atomic_write_json
from .errors import AggregationError

__all__ = [
    "ProfileStats",
    "ProfileIncrement",
    "ProfileAggregator",
    "JsonProfileStore",
    "MemoryProfileStore",
    "next_increment",
]

_USER_ID_RE = re.compile(r"^[A-Za-z0-9_.@-]+$")


@dataclass(frozen=True)
class ProfileStats:
    """Aggregate results across all finished games for one user."""

    total_games: int = 0
    total_score: int = 0
    average_score: float = 0.0

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "total_games": self.total_games,
            "total_score": self.total_score,
            "average_score": self.average_score,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ProfileStats":
        try:
            stats = cls(
                total_games=int(payload.get("total_games", 0) or 0),
                total_score=int(payload.get("total_score", 0) or 0),
                average_score=float(payload.get("average_score", 0.0) or 0.0),
            )
        except (OverflowError, TypeError, ValueError) as exc:
            raise AggregationError(f"Malformed profile stats: {exc}") from exc
        if not math.isfinite(stats.average_score):
            raise AggregationError(
                "Malformed profile stats: average_score must be finite."
            )
        return stats


@dataclass(frozen=True)
class ProfileIncrement:
    """Deltas applied to a profile when a game finishes."""

    games_delta: int
    score_delta: int
    new_average: float


class ProfileAggregator(Protocol):
    async def read_stats(self, user_id: str) -> ProfileStats:
        ...

    async def apply_increment(
        self, user_id: str, increment: ProfileIncrement
    ) -> None:
        ...


def next_increment(stats: ProfileStats, score: int) -> ProfileIncrement:
    """Return the increment for one more finished game scoring ``score``."""

    total_games = stats.total_games + 1
    total_score = stats.total_score + score
    return ProfileIncrement(
        games_delta=1,
        score_delta=score,
        new_average=total_score / total_games,
    )


class JsonProfileStore:
    """Keep one JSON stats document per user under ``root``."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, user_id: str) -> Path:
        if not _USER_ID_RE.match(user_id) or user_id in {".", ".."}:
            raise AggregationError(f"Invalid user id '{user_id}'.")
        return self._root / f"{user_id}.json"

    async def read_stats(self, user_id: str) -> ProfileStats:
        target = self.path_for(user_id)
        if not target.is_file():
            return ProfileStats()
        try:
            payload = json.loads(target.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise AggregationError(
                f"Failed to read profile file: {target}"
            ) from exc
        if not isinstance(payload, Mapping):
            raise AggregationError(
                f"Profile file does not contain an object: {target}"
            )
        return ProfileStats.from_dict(payload)

    async def apply_increment(
        self, user_id: str, increment: ProfileIncrement
    ) -> None:
        current = await self.read_stats(user_id)
        updated = _apply(current, increment)
        try:
            atomic_write_json(self.path_for(user_id), updated.to_dict())
        except OSError as exc:
            raise AggregationError(
                f"Failed to write profile for '{user_id}'."
            ) from exc


class MemoryProfileStore:
    """In-process profile store recording every increment it receives."""

    def __init__(self, stats: Mapping[str, ProfileStats] | None = None) -> None:
        self._stats: Dict[str, ProfileStats] = dict(stats or {})
        self.increments: list[tuple[str, ProfileIncrement]] = []

    async def read_stats(self, user_id: str) -> ProfileStats:
        return self._stats.get(user_id, ProfileStats())

    async def apply_increment(
        self, user_id: str, increment: ProfileIncrement
    ) -> None:
        self.increments.append((user_id, increment))
        self._stats[user_id] = _apply(
            self._stats.get(user_id, ProfileStats()), increment
        )


def _apply(stats: ProfileStats, increment: ProfileIncrement) -> ProfileStats:
    return ProfileStats(
        total_games=stats.total_games + increment.games_delta,
        total_score=stats.total_score + increment.score_delta,
        average_score=increment.new_average,
    )
