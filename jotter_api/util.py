from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def rfc3339(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def rfc3339_now() -> str:
    return rfc3339(utc_now())


def atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp.{os.getpid()}")
    tmp_path.write_text(content, encoding="utf-8")
    tmp_path.replace(path)


def atomic_write_json(path: Path, data: object) -> None:
    atomic_write_text(path, json.dumps(data, indent=2, sort_keys=True) + "\n")


def index_of(items: list, target: object) -> int:
    """Position of ``target`` by identity; -1 when absent.

    Note items compare equal by value, so ``list.index`` would match the
    first lookalike rather than the object being edited.
    """
    for i, item in enumerate(items):
        if item is target:
            return i
    return -1
