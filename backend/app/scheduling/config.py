"""Immutable engine configuration."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Tuple
from zoneinfo import ZoneInfo

from app.scheduling.timeutil import parse_hhmm
from app.scheduling.types import Window, parse_windows

DEFAULT_WINDOWS = ("04:30-06:30", "08:00-19:00")
DEFAULT_MIN_GAP_MINUTES = 15
DEFAULT_PREFERRED_START = "10:00"
DEFAULT_PRIORITY_SCORE = 50.0
DEFAULT_CUTOFF_HOUR = 20


@dataclass(frozen=True)
class SchedulingConfig:
    timezone: ZoneInfo = ZoneInfo("Asia/Tokyo")
    holiday_calendar_id: str = "ja.japanese#holiday@group.v.calendar.google.com"
    calendar_id: str = "primary"
    default_windows: Tuple[Window, ...] = parse_windows(DEFAULT_WINDOWS)
    default_min_gap_minutes: float = DEFAULT_MIN_GAP_MINUTES
    default_preferred_start: time = parse_hhmm(DEFAULT_PREFERRED_START)
    default_priority_score: float = DEFAULT_PRIORITY_SCORE
    cutoff_hour: int = DEFAULT_CUTOFF_HOUR

    @classmethod
    def from_settings(cls, settings) -> "SchedulingConfig":
        return cls(
            timezone=ZoneInfo(settings.business_timezone),
            holiday_calendar_id=settings.holiday_calendar_id,
            calendar_id=settings.default_calendar_id,
            default_windows=parse_windows(settings.default_business_windows or DEFAULT_WINDOWS),
            default_min_gap_minutes=settings.default_min_gap_minutes,
            default_preferred_start=parse_hhmm(settings.default_preferred_start),
            default_priority_score=settings.default_priority_score,
            cutoff_hour=settings.reschedule_cutoff_hour,
        )
