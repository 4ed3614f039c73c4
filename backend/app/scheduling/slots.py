"""Free-slot search within business windows, rolling across business days."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Sequence

from app.scheduling.business_days import BusinessDayOracle
from app.scheduling.config import SchedulingConfig
from app.scheduling.errors import NoSlotAvailable
from app.scheduling.ports import CalendarBackend
from app.scheduling.timeutil import civil_datetime, to_civil
from app.scheduling.types import BusyInterval, Slot, SlotRequest, Window

logger = logging.getLogger(__name__)

MAX_SEARCH_BUSINESS_DAYS = 14


def normalize_duration(duration_hours: Optional[float]) -> timedelta:
    if duration_hours is None or duration_hours <= 0:
        return timedelta(hours=1)
    return timedelta(hours=duration_hours)


def normalize_gap(min_gap_minutes: Optional[float], default: float = 15) -> timedelta:
    if min_gap_minutes is None or min_gap_minutes < 0:
        return timedelta(minutes=default)
    return timedelta(minutes=min_gap_minutes)


def scan_window(
    busy: Sequence[BusyInterval],
    window_start: datetime,
    window_end: datetime,
    cursor: datetime,
    duration: timedelta,
    gap: timedelta,
) -> Optional[tuple[datetime, datetime]]:
    """First-fit scan of one window.

    ``busy`` must be sorted by start. Returns the earliest ``(start, end)``
    that keeps ``gap`` clear before the next busy block (and before the
    window end), or ``None``.
    """
    cursor = max(cursor, window_start)
    blocks: List[BusyInterval] = list(busy) + [BusyInterval(window_end, window_end)]
    for block in blocks:
        block_start = min(max(block.start, window_start), window_end)
        block_end = min(block.end, window_end)
        if cursor + duration <= block_start - gap:
            return cursor, cursor + duration
        if cursor < block_end + gap:
            cursor = block_end + gap
        if cursor >= window_end:
            break
    return None


class SlotFinder:
    """Finds the earliest slot in a day, and rolls forward over business days."""

    def __init__(self, backend: CalendarBackend, oracle: BusinessDayOracle, config: SchedulingConfig):
        self.backend = backend
        self.oracle = oracle
        self.config = config

    def find_slot_in_day(
        self,
        day: date,
        preferred_start: Optional[time],
        duration_hours: Optional[float],
        windows: Iterable[Window],
        min_gap_minutes: Optional[float],
        resource_id: Optional[str] = None,
    ) -> Optional[Slot]:
        tz = self.config.timezone
        duration = normalize_duration(duration_hours)
        gap = normalize_gap(min_gap_minutes, self.config.default_min_gap_minutes)
        prefer = civil_datetime(day, preferred_start or self.config.default_preferred_start, tz)

        busy = self.backend.query_free_busy(day, resource_id or self.config.calendar_id)
        busy = sorted(
            (BusyInterval(to_civil(b.start, tz), to_civil(b.end, tz)) for b in busy),
            key=lambda b: b.start,
        )

        for window in windows:
            window_start, window_end = window.bounds(day, tz)
            cursor = prefer if window_start <= prefer < window_end else window_start
            found = scan_window(busy, window_start, window_end, cursor, duration, gap)
            if found:
                return Slot(start=found[0], end=found[1], day=day)
        return None

    def find_slot_across_days(
        self,
        start_day: date,
        preferred_start: Optional[time],
        duration_hours: Optional[float],
        windows: Sequence[Window],
        min_gap_minutes: Optional[float],
        allow_weekend_holiday: bool = False,
        resource_id: Optional[str] = None,
    ) -> Slot:
        """Search up to 14 business days starting at ``start_day``.

        Raises NoSlotAvailable when every day in the horizon is full.
        """
        day = start_day
        if not self.oracle.is_business_day(day, allow_weekend_holiday):
            day = self.oracle.next_business_day(day, allow_weekend_holiday)

        for _ in range(MAX_SEARCH_BUSINESS_DAYS):
            if self.oracle.is_business_day(day, allow_weekend_holiday):
                slot = self.find_slot_in_day(
                    day,
                    preferred_start,
                    duration_hours,
                    windows,
                    min_gap_minutes,
                    resource_id=resource_id,
                )
                if slot:
                    return slot
                logger.debug("No free slot on %s, rolling to next business day", day.isoformat())
            day = self.oracle.next_business_day(day, allow_weekend_holiday)

        raise NoSlotAvailable(f"no free slot within {MAX_SEARCH_BUSINESS_DAYS} business days")

    def find(self, request: SlotRequest, resource_id: Optional[str] = None) -> Slot:
        return self.find_slot_across_days(
            request.day,
            request.preferred_start,
            request.duration_hours,
            request.windows or self.config.default_windows,
            request.min_gap_minutes,
            request.allow_weekend_holiday,
            resource_id=resource_id,
        )
