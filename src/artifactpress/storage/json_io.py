"""Deterministic JSON and atomic text writes for records and assets.

Every file the pipeline writes goes through ``atomic_write_text`` so a reader
never observes a half-written record or asset.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any


def dumps(obj: Any, *, pretty: bool = True) -> str:
    """Serialize to deterministic JSON with sorted keys."""
    return json.dumps(
        obj,
        ensure_ascii=False,
        sort_keys=True,
        indent=2 if pretty else None,
    )


def read_json(path: Path) -> Any:
    """Load JSON from ``path``; raises ``OSError`` or ``ValueError`` on failure."""
    return json.loads(path.read_text(encoding="utf-8"))


def atomic_write_text(path: Path, data: str, *, encoding: str = "utf-8") -> None:
    """Atomically write text to a file by writing to a temp file then replacing.

    Ensures parent directories exist and minimizes risk of partial writes.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with NamedTemporaryFile(
        "w", encoding=encoding, dir=str(path.parent), delete=False, newline=""
    ) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
        tmp_path = Path(tmp.name)
    try:
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


__all__ = [
    "atomic_write_text",
    "dumps",
    "read_json",
]
