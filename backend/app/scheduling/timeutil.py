"""Civil-time helpers for the fixed business timezone."""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from app.scheduling.errors import ValidationError

HHMM_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_hhmm(value: str) -> time:
    """Parse a strict "HH:MM" civil time of day."""
    match = HHMM_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValidationError(f"invalid time of day: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValidationError(f"invalid time of day: {value!r}")
    return time(hour, minute)


def parse_day(value: str) -> date:
    """Parse a "YYYY-MM-DD" calendar date."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value.strip()):
        raise ValidationError(f"invalid date: {value!r}")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValidationError(f"invalid date: {value!r}") from exc


def as_aware(value: datetime, tz: tzinfo) -> datetime:
    """Attach ``tz`` to naive datetimes, leave aware ones untouched."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def to_civil(value: datetime, tz: tzinfo) -> datetime:
    return as_aware(value, tz).astimezone(tz)


def civil_datetime(day: date, at: time, tz: tzinfo) -> datetime:
    return datetime.combine(day, at, tzinfo=tz)


def start_of_day(day: date, tz: tzinfo) -> datetime:
    return civil_datetime(day, time(0, 0), tz)


def end_of_day(day: date, tz: tzinfo) -> datetime:
    return civil_datetime(day, time(23, 59, 59), tz)


def parse_bound(value: str, tz: tzinfo, *, end_of_range: bool) -> datetime:
    """Parse a range bound: a bare date expands to the start or end of that civil day."""
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError("time bound is required")
    if DATE_PATTERN.match(text):
        day = parse_day(text)
        return end_of_day(day, tz) if end_of_range else start_of_day(day, tz)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(f"invalid timestamp: {value!r}") from exc
    return as_aware(parsed, tz)


def rfc3339(value: datetime, tz: tzinfo) -> str:
    """Format an instant in the business timezone, seconds precision."""
    return to_civil(value, tz).replace(microsecond=0).isoformat()


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start) / timedelta(hours=1)


def utc(value: datetime) -> datetime:
    return as_aware(value, timezone.utc).astimezone(timezone.utc)
