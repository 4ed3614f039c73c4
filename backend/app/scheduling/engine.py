"""Scheduling engine: configuration and collaborators composed once."""
from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Any, Callable, Mapping, Optional, Sequence

from app.scheduling.business_days import BusinessDayOracle
from app.scheduling.config import SchedulingConfig
from app.scheduling.ports import CalendarBackend, HolidayOracle, Identity
from app.scheduling.priority import compute_priority
from app.scheduling.slots import SlotFinder
from app.scheduling.sweep import RescheduleSweep, SweepResult
from app.scheduling.timeutil import to_civil
from app.scheduling.types import Slot, SlotRequest


class SchedulingEngine:
    def __init__(
        self,
        config: SchedulingConfig,
        backend: CalendarBackend,
        holidays: Optional[HolidayOracle] = None,
        identity: Optional[Identity] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.backend = backend
        self.identity = identity
        self.oracle = BusinessDayOracle(holidays)
        self.slots = SlotFinder(backend, self.oracle, config)
        self._clock = clock

    @property
    def tz(self) -> tzinfo:
        return self.config.timezone

    def now(self) -> datetime:
        current = self._clock() if self._clock else datetime.now(self.tz)
        return to_civil(current, self.tz)

    def today(self) -> date:
        return self.now().date()

    def current_user_email(self) -> str:
        return self.identity.current_user_email() if self.identity else ""

    def compute_priority(
        self,
        metadata: Optional[Mapping[str, Any]],
        explicit: Any = None,
        today: Optional[date] = None,
    ) -> Optional[float]:
        return compute_priority(metadata, explicit, today=today or self.today(), tz=self.tz)

    def find_slot(self, request: SlotRequest, calendar_id: Optional[str] = None) -> Slot:
        return self.slots.find(request, resource_id=calendar_id)

    def reschedule_pending(
        self,
        reference: Optional[datetime] = None,
        windows: Optional[Sequence[str]] = None,
        min_gap_minutes: Optional[float] = None,
        allow_weekend_holiday: bool = False,
        calendar_id: Optional[str] = None,
    ) -> SweepResult:
        return RescheduleSweep(self).run(
            reference,
            windows=windows,
            min_gap_minutes=min_gap_minutes,
            allow_weekend_holiday=allow_weekend_holiday,
            calendar_id=calendar_id,
        )
