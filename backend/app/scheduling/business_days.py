"""Weekend and holiday awareness."""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from app.scheduling.errors import BackendUnavailable
from app.scheduling.ports import HolidayOracle

logger = logging.getLogger(__name__)

MAX_ADVANCE_DAYS = 30
WEEKEND = (5, 6)


class BusinessDayOracle:
    """Decides whether a date is a business day.

    Holiday lookups fail open: if the holiday oracle errors, the date is
    treated as a regular working day and a warning is logged.
    """

    def __init__(self, holidays: Optional[HolidayOracle] = None):
        self._holidays = holidays

    def is_business_day(self, day: date, allow_override: bool = False) -> bool:
        if allow_override:
            return True
        if day.weekday() in WEEKEND:
            return False
        return not self._is_holiday(day)

    def next_business_day(self, day: date, allow_override: bool = False) -> date:
        """Return the first business day strictly after ``day``.

        Gives up after 30 candidates and returns the last one tried.
        """
        candidate = day
        for _ in range(MAX_ADVANCE_DAYS):
            candidate = candidate + timedelta(days=1)
            if self.is_business_day(candidate, allow_override):
                return candidate
        logger.warning(
            "No business day within %s days after %s; falling back to %s",
            MAX_ADVANCE_DAYS,
            day.isoformat(),
            candidate.isoformat(),
        )
        return candidate

    def _is_holiday(self, day: date) -> bool:
        if self._holidays is None:
            return False
        try:
            return bool(self._holidays.is_holiday(day))
        except (BackendUnavailable, OSError) as exc:
            logger.warning("Holiday check failed for %s, treating as working day: %s", day.isoformat(), exc)
            return False
