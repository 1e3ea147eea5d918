"""Single-slot persistence for the in-progress quiz session."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Mapping, Protocol

from ..core.files import atomic_write_json
from .errors import PersistenceError

__all__ = [
    "SESSION_FILENAME",
    "SessionStore",
    "JsonFileSessionStore",
    "MemorySessionStore",
]


SESSION_FILENAME = "current.json"


class SessionStore(Protocol):
    """Persistent slot holding at most one serialized session."""

    def get(self) -> Mapping[str, Any] | None:
        ...

    def put(self, snapshot: Mapping[str, Any]) -> None:
        ...

    def clear(self) -> None:
        ...


class JsonFileSessionStore:
    """Store the session snapshot as a JSON document on disk."""

    def __init__(self, root: Path, *, filename: str = SESSION_FILENAME) -> None:
        self._root = root
        self._filename = filename

    @property
    def path(self) -> Path:
        return self._root / self._filename

    def get(self) -> Mapping[str, Any] | None:
        target = self.path
        if not target.is_file():
            return None
        try:
            payload = json.loads(target.read_text(encoding="utf-8"))
        except OSError as exc:
            raise PersistenceError(
                f"Failed to read session file: {target}"
            ) from exc
        except ValueError as exc:
            raise PersistenceError(
                f"Failed to parse session file: {target}"
            ) from exc
        if not isinstance(payload, Mapping):
            raise PersistenceError(
                f"Session file does not contain an object: {target}"
            )
        return payload

    def put(self, snapshot: Mapping[str, Any]) -> None:
        try:
            atomic_write_json(self.path, snapshot)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(
                f"Failed to write session file: {self.path}"
            ) from exc

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(
                f"Failed to remove session file: {self.path}"
            ) from exc


class MemorySessionStore:
    """Process-local store, handy for tests and ephemeral runs."""

    def __init__(self, snapshot: Mapping[str, Any] | None = None) -> None:
        self._snapshot = copy.deepcopy(dict(snapshot)) if snapshot else None
        self.writes = 0
        self.clears = 0

    def get(self) -> Mapping[str, Any] | None:
        if self._snapshot is None:
            return None
        return copy.deepcopy(self._snapshot)

    def put(self, snapshot: Mapping[str, Any]) -> None:
        self._snapshot = copy.deepcopy(dict(snapshot))
        self.writes += 1

    def clear(self) -> None:
        self._snapshot = None
        self.clears += 1

