"""Daily sweep relocating overdue, unstarted tasks to the next business day."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, List, Optional, Sequence

from app.scheduling.codec import decode_description, encode_description
from app.scheduling.errors import BackendUnavailable, PerTaskRescheduleFailure
from app.scheduling.metadata import (
    TaskMetadata,
    auto_reschedule_enabled,
    finite_number,
    is_task_completed,
    pick_business_windows,
)
from app.scheduling.priority import (
    MAX_SCORE,
    MIN_SCORE,
    clamp,
    compute_priority,
    merge_priority_into_metadata,
    preferred_start_for_priority,
    round2,
)
from app.scheduling.timeutil import end_of_day, hours_between, rfc3339, start_of_day, to_civil
from app.scheduling.types import CalendarTask, TaskSpec, parse_windows

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from app.scheduling.engine import SchedulingEngine

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"
MIN_DURATION_HOURS = 0.5


@dataclass
class RescheduledTask:
    id: str
    new_date: date
    priority_score: float
    all_day: bool = False
    new_start: Optional[datetime] = None
    new_end: Optional[datetime] = None


@dataclass
class RescheduleError:
    id: str
    message: str


@dataclass
class SweepResult:
    checked_at: str
    rescheduled: List[RescheduledTask] = field(default_factory=list)
    errors: List[RescheduleError] = field(default_factory=list)
    candidates: int = 0


@dataclass
class _Candidate:
    task: CalendarTask
    metadata: TaskMetadata
    priority: float
    start: datetime


@dataclass
class _SweepDefaults:
    windows: List[str]
    min_gap_minutes: float
    allow_weekend_holiday: bool
    calendar_id: str
    reference: datetime
    target_day: date


class RescheduleSweep:
    """Re-prioritizes and relocates pending tasks once the daily cutoff has passed.

    Safe to call repeatedly: before the cutoff hour it does nothing. Failures
    are isolated per task and reported in ``SweepResult.errors``.
    """

    def __init__(self, engine: "SchedulingEngine"):
        self.engine = engine
        self.config = engine.config
        self.tz = engine.config.timezone

    def run(
        self,
        reference: Optional[datetime] = None,
        windows: Optional[Sequence[str]] = None,
        min_gap_minutes: Optional[float] = None,
        allow_weekend_holiday: bool = False,
        calendar_id: Optional[str] = None,
    ) -> SweepResult:
        reference = to_civil(reference, self.tz) if reference else self.engine.now()
        result = SweepResult(checked_at=rfc3339(reference, self.tz))
        if reference.hour < self.config.cutoff_hour:
            logger.debug("Sweep skipped, %s is before the %02d:00 cutoff", result.checked_at, self.config.cutoff_hour)
            return result

        calendar_id = calendar_id or self.config.calendar_id
        day = reference.date()
        try:
            tasks = self._tasks_on(day, calendar_id)
        except BackendUnavailable as exc:
            logger.warning("Sweep could not list tasks for %s: %s", day.isoformat(), exc)
            result.errors.append(RescheduleError(id="", message=str(exc)))
            return result

        candidates: List[_Candidate] = []
        for task in tasks:
            try:
                if self._is_eligible(task, reference):
                    candidates.append(self._prepare(task, day))
            except Exception as exc:
                logger.warning("Sweep could not evaluate task %s: %s", task.id, exc)
                result.errors.append(RescheduleError(id=task.id, message=str(exc)))
        result.candidates = len(candidates)
        if not candidates:
            return result

        candidates.sort(key=lambda c: (-c.priority, c.start))
        defaults = _SweepDefaults(
            windows=pick_business_windows(
                list(windows) if windows else None,
                [str(window) for window in self.config.default_windows],
            ),
            min_gap_minutes=(
                finite_number(min_gap_minutes)
                if finite_number(min_gap_minutes) is not None
                else self.config.default_min_gap_minutes
            ),
            allow_weekend_holiday=allow_weekend_holiday is True,
            calendar_id=calendar_id,
            reference=reference,
            target_day=self.engine.oracle.next_business_day(day, allow_weekend_holiday is True),
        )

        for candidate in candidates:
            try:
                result.rescheduled.append(self._relocate(candidate, defaults))
            except PerTaskRescheduleFailure as failure:
                logger.warning("Sweep skipped task %r: %s", failure.task_id, failure.message)
                result.errors.append(RescheduleError(id=failure.task_id, message=failure.message))
            except Exception as exc:
                logger.warning("Sweep failed to relocate task %s: %s", candidate.task.id, exc)
                result.errors.append(RescheduleError(id=candidate.task.id, message=str(exc)))

        logger.info(
            "Sweep at %s: candidates=%s rescheduled=%s errors=%s",
            result.checked_at,
            result.candidates,
            len(result.rescheduled),
            len(result.errors),
        )
        return result

    def _tasks_on(self, day: date, calendar_id: str) -> List[CalendarTask]:
        backend = self.engine.backend
        tasks: List[CalendarTask] = []
        token: Optional[str] = None
        while True:
            page = backend.list_tasks(start_of_day(day, self.tz), end_of_day(day, self.tz), calendar_id, token)
            tasks.extend(page.items)
            token = page.next_page_token
            if not token:
                return tasks

    def _is_eligible(self, task: CalendarTask, reference: datetime) -> bool:
        if task.status == CANCELLED:
            return False
        metadata = decode_description(task.description).metadata
        if is_task_completed(metadata, task.title):
            return False
        if not auto_reschedule_enabled(metadata):
            return False
        start = task.start_instant(self.tz)
        return start is not None and start <= reference

    def _prepare(self, task: CalendarTask, today: date) -> _Candidate:
        metadata = dict(decode_description(task.description).metadata or {})
        metadata.pop("priorityScore", None)
        computed = compute_priority(metadata, today=today, tz=self.tz)
        priority = computed if computed is not None else self.config.default_priority_score
        return _Candidate(
            task=task,
            metadata=metadata,
            priority=clamp(round2(priority), MIN_SCORE, MAX_SCORE),
            start=task.start_instant(self.tz),
        )

    def _relocate(self, candidate: _Candidate, defaults: _SweepDefaults) -> RescheduledTask:
        task, metadata = candidate.task, candidate.metadata
        if not task.id:
            raise PerTaskRescheduleFailure("", "task id missing")

        windows = pick_business_windows(metadata.get("businessWindows"), defaults.windows)
        # Only an explicit task-level true widens the sweep-wide setting.
        allow = True if metadata.get("allowWeekendHoliday") is True else defaults.allow_weekend_holiday
        gap = finite_number(metadata.get("minGapMinutes"))
        if gap is None:
            gap = defaults.min_gap_minutes

        stored = merge_priority_into_metadata(metadata, candidate.priority) or {}
        stored["lastRescheduledAt"] = rfc3339(defaults.reference, self.tz)
        previous_count = finite_number(metadata.get("rescheduleCount")) or 0
        stored["rescheduleCount"] = previous_count + 1
        stored["previousStart"] = rfc3339(candidate.start, self.tz)
        description = encode_description(task.description, stored)

        oracle = self.engine.oracle
        backend = self.engine.backend
        if task.all_day:
            day = defaults.target_day
            if not oracle.is_business_day(day, allow):
                day = oracle.next_business_day(day, allow)
            patched = backend.patch_task(
                task.id,
                TaskSpec(start_date=day, end_date=day + timedelta(days=1), description=description),
                defaults.calendar_id,
            )
            return RescheduledTask(
                id=patched.id or task.id,
                new_date=day,
                priority_score=candidate.priority,
                all_day=True,
            )

        end = task.end_instant(self.tz)
        duration = max(hours_between(candidate.start, end), MIN_DURATION_HOURS) if end else 1.0
        prefer = preferred_start_for_priority(candidate.priority, candidate.start, self.tz)
        slot = self.engine.slots.find_slot_across_days(
            defaults.target_day,
            prefer,
            duration,
            parse_windows(windows),
            gap,
            allow,
            resource_id=defaults.calendar_id,
        )
        patched = backend.patch_task(
            task.id,
            TaskSpec(start=slot.start, end=slot.end, description=description),
            defaults.calendar_id,
        )
        return RescheduledTask(
            id=patched.id or task.id,
            new_date=slot.day,
            priority_score=candidate.priority,
            new_start=slot.start,
            new_end=slot.end,
        )
