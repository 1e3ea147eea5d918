"""Core shared helpers for quiz_utils commands."""

from __future__ import annotations

from .files import atomic_write_json, read_jsonl, write_jsonl
from .logging import JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "atomic_write_json",
    "read_jsonl",
    "write_jsonl",
    "configure_logger",
    "JsonLogFormatter",
    "ensure_workspace",
    "WorkspaceLayout",
    "WorkspaceError",
    "WORKSPACE_ENV",
]
