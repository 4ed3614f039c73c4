"""Value types exchanged between the engine and its collaborators."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import List, Optional, Sequence, Tuple

from app.scheduling.errors import ValidationError
from app.scheduling.timeutil import civil_datetime, parse_hhmm, start_of_day, to_civil


@dataclass(frozen=True)
class BusyInterval:
    start: datetime
    end: datetime


WINDOW_END_OF_DAY = "24:00"


@dataclass(frozen=True)
class Window:
    """A civil time-of-day range inside one calendar date.

    ``"24:00"`` is accepted as an end bound and closes the window at the
    following midnight.
    """

    start: time
    end: time
    until_midnight: bool = False

    @classmethod
    def parse(cls, value: str) -> "Window":
        """Parse ``"HH:MM-HH:MM"``."""
        if not isinstance(value, str) or value.count("-") != 1:
            raise ValidationError(f"invalid business window: {value!r}")
        raw_start, raw_end = value.strip().split("-")
        if raw_end.strip() == WINDOW_END_OF_DAY:
            return cls(parse_hhmm(raw_start), time(0, 0), until_midnight=True)
        window = cls(parse_hhmm(raw_start), parse_hhmm(raw_end))
        if window.end <= window.start:
            raise ValidationError(f"business window ends before it starts: {value!r}")
        return window

    def bounds(self, day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
        if self.until_midnight:
            return civil_datetime(day, self.start, tz), start_of_day(day + timedelta(days=1), tz)
        return civil_datetime(day, self.start, tz), civil_datetime(day, self.end, tz)

    def __str__(self) -> str:
        end = WINDOW_END_OF_DAY if self.until_midnight else f"{self.end:%H:%M}"
        return f"{self.start:%H:%M}-{end}"


def parse_windows(values: Sequence[str]) -> Tuple[Window, ...]:
    return tuple(Window.parse(value) for value in values)


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime
    day: date


@dataclass(frozen=True)
class SlotRequest:
    day: date
    preferred_start: Optional[time] = None
    duration_hours: float = 1.0
    windows: Tuple[Window, ...] = ()
    min_gap_minutes: Optional[float] = None
    allow_weekend_holiday: bool = False


@dataclass
class CalendarTask:
    """A calendar entry as seen by the engine. Owned by the backend."""

    id: str
    title: str = ""
    description: str = ""
    status: str = "confirmed"
    all_day: bool = False
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    calendar_id: str = "primary"
    location: str = ""
    creator_email: str = ""

    def start_instant(self, tz: tzinfo) -> Optional[datetime]:
        if self.start is not None:
            return to_civil(self.start, tz)
        if self.start_date is not None:
            return start_of_day(self.start_date, tz)
        return None

    def end_instant(self, tz: tzinfo) -> Optional[datetime]:
        if self.end is not None:
            return to_civil(self.end, tz)
        if self.end_date is not None:
            return start_of_day(self.end_date, tz)
        return None


@dataclass
class TaskSpec:
    """Fields to write on create or patch. ``None`` leaves a field untouched."""

    title: Optional[str] = None
    description: Optional[str] = None
    all_day: Optional[bool] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    location: Optional[str] = None
    status: Optional[str] = None
    creator_email: Optional[str] = None


@dataclass
class TaskPage:
    items: List[CalendarTask] = field(default_factory=list)
    next_page_token: Optional[str] = None
