"""Task metadata: sanitizing constructor and flag helpers.

Metadata is an open JSON object. Values are restricted to JSON kinds
(string, finite number, boolean, null, array, object) nested at most three
levels deep; anything else is dropped.
"""
from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import JsonValue

TaskMetadata = Dict[str, JsonValue]

MAX_DEPTH = 3
TRUTHY_STRINGS = {"true", "done", "completed", "完了", "済"}
COMPLETED_TITLE = re.compile(r"^\s*(✅|✔|\[done\]|\[完了\]|完了|済)", re.IGNORECASE)
WINDOW_STRING = re.compile(r"^\d{2}:\d{2}-\d{2}:\d{2}$")

_DROP = object()


def _sanitize_value(value: Any, depth: int) -> Any:
    if depth > MAX_DEPTH:
        return _DROP
    if value is None or isinstance(value, (str, bool)):
        return value
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else _DROP
    if isinstance(value, (list, tuple)):
        items = (_sanitize_value(item, depth + 1) for item in value)
        return [item for item in items if item is not _DROP]
    if isinstance(value, Mapping):
        cleaned = {}
        for key, item in value.items():
            sanitized = _sanitize_value(item, depth + 1)
            if sanitized is not _DROP:
                cleaned[str(key)] = sanitized
        return cleaned
    return _DROP


def sanitize_metadata(raw: Any) -> Optional[TaskMetadata]:
    """Return a sanitized copy of ``raw``, or ``None`` when nothing usable is left."""
    if not isinstance(raw, Mapping):
        return None
    sanitized = _sanitize_value(raw, 0)
    if not isinstance(sanitized, dict) or not sanitized:
        return None
    return sanitized


def is_truthy_flag(value: Any) -> bool:
    if value is True:
        return True
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return False


def is_task_completed(metadata: Optional[Mapping[str, Any]], title: Optional[str]) -> bool:
    meta = metadata or {}
    for key in ("completed", "done", "status"):
        if is_truthy_flag(meta.get(key)):
            return True
    progress = meta.get("progress")
    if isinstance(progress, str) and is_truthy_flag(progress):
        return True
    return isinstance(title, str) and bool(COMPLETED_TITLE.match(title))


def auto_reschedule_enabled(metadata: Optional[Mapping[str, Any]]) -> bool:
    flag = (metadata or {}).get("autoReschedule")
    if flag is False:
        return False
    if isinstance(flag, str) and flag.strip().lower() == "false":
        return False
    return True


def pick_business_windows(candidate: Any, fallback: Sequence[str]) -> List[str]:
    """Well-formed ``HH:MM-HH:MM`` strings from ``candidate``, else ``fallback``."""
    if isinstance(candidate, list) and candidate:
        filtered = [
            value.strip()
            for value in candidate
            if isinstance(value, str) and WINDOW_STRING.match(value.strip())
        ]
        if filtered:
            return filtered
    return list(fallback)


def finite_number(value: Any) -> Optional[float]:
    """``value`` when it is a real finite number (booleans excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) else None
