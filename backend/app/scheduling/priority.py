"""Deterministic priority scoring from task metadata."""
from __future__ import annotations

import math
from datetime import date, datetime, time, tzinfo
from typing import Any, Mapping, Optional

from app.scheduling.metadata import TaskMetadata, finite_number
from app.scheduling.timeutil import DATE_PATTERN, to_civil

MIN_SCORE = 0.0
MAX_SCORE = 100.0

# (minimum score, preferred civil start) checked top down.
PREFERRED_START_TIERS = (
    (85, time(8, 30)),
    (70, time(9, 30)),
    (55, time(11, 0)),
    (40, time(13, 30)),
)
FALLBACK_START = time(15, 0)


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def round2(value: float) -> float:
    """Round half up to two decimals."""
    return math.floor(value * 100 + 0.5) / 100


def to_number(value: Any) -> Optional[float]:
    """Finite number from a number or a numeric string, else ``None``."""
    number = finite_number(value)
    if number is not None:
        return number
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def parse_deadline(value: Any, tz: tzinfo) -> Optional[date]:
    """Civil date of a deadline string in the business timezone."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        if DATE_PATTERN.match(text):
            return date.fromisoformat(text)
        return to_civil(datetime.fromisoformat(text.replace("Z", "+00:00")), tz).date()
    except (ValueError, OverflowError):
        return None


def _is_must(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return value is True


def compute_priority(
    metadata: Optional[Mapping[str, Any]],
    explicit: Any = None,
    *,
    today: date,
    tz: tzinfo,
) -> Optional[float]:
    """Score a task between 0 and 100.

    An explicit score short-circuits the metadata. Without metadata there is
    nothing to score and ``None`` is returned.
    """
    override = to_number(explicit)
    if override is not None:
        return clamp(round2(override), MIN_SCORE, MAX_SCORE)
    if not isinstance(metadata, Mapping):
        return None

    deadline_score = 0.0
    deadline = parse_deadline(metadata.get("deadline"), tz)
    if deadline is not None:
        days_left = (deadline - today).days
        deadline_score = clamp((30 - days_left) * 2, 0, 60)

    impact = clamp(_number_or(metadata.get("impact"), 3), 1, 5)
    effort = clamp(_number_or(metadata.get("effort"), 3), 1, 5)
    must_bonus = 10 if _is_must(metadata.get("must")) else 0

    raw = deadline_score + impact * 6 - effort * 3 + must_bonus
    return clamp(round2(raw), MIN_SCORE, MAX_SCORE)


def _number_or(value: Any, default: float) -> float:
    number = to_number(value)
    return default if number is None else number


def merge_priority_into_metadata(
    metadata: Optional[Mapping[str, Any]],
    priority: Optional[float],
) -> Optional[TaskMetadata]:
    merged: TaskMetadata = dict(metadata) if isinstance(metadata, Mapping) else {}
    if finite_number(priority) is not None:
        merged["priorityScore"] = priority
    elif "priorityScore" in merged:
        existing = to_number(merged["priorityScore"])
        if existing is not None:
            merged["priorityScore"] = clamp(existing, MIN_SCORE, MAX_SCORE)
    return merged or None


def preferred_start_for_priority(
    priority: Optional[float],
    original_start: Optional[datetime],
    tz: tzinfo,
) -> time:
    if finite_number(priority) is not None:
        for threshold, start in PREFERRED_START_TIERS:
            if priority >= threshold:
                return start
    if original_start is not None:
        civil = to_civil(original_start, tz)
        return time(civil.hour, civil.minute)
    return FALLBACK_START
