"""Common file handling utilities shared across quiz_utils modules."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, List, Mapping, Sequence

__all__ = [
    "atomic_write_json",
    "read_jsonl",
    "write_jsonl",
]


def atomic_write_json(
    path: Path, payload: Mapping[str, Any], *, mode: int = 0o600
) -> None:
    """Write ``payload`` so readers never observe a half-written file."""

    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        encoding="utf-8",
        dir=str(path.parent),
        suffix=".tmp",
    )
    try:
        json.dump(payload, handle, indent=2, sort_keys=True)
        handle.flush()
        os.fsync(handle.fileno())
    except BaseException:
        handle.close()
        Path(handle.name).unlink(missing_ok=True)
        raise
    handle.close()
    os.replace(handle.name, path)
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass


def read_jsonl(path: Path) -> List[dict]:
    """Read one JSON object per non-blank line."""

    data: List[dict] = []
    with Path(path).open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            record = json.loads(line)
            if not isinstance(record, dict):
                raise ValueError("Each JSONL line must contain an object.")
            data.append(record)
    return data


def write_jsonl(path: Path, records: Sequence[Mapping[str, Any]]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as fh:
        for rec in records:
            fh.write(json.dumps(rec, ensure_ascii=False))
            fh.write("\n")
