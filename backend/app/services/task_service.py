"""Task creation, normalized views and listing on top of the scheduling engine."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from app.api.schemas.task import EventTimePayload, TaskCreateRequest, TaskView
from app.scheduling.codec import decode_description, encode_description
from app.scheduling.engine import SchedulingEngine
from app.scheduling.errors import TaskNotFound, ValidationError
from app.scheduling.metadata import finite_number, sanitize_metadata
from app.scheduling.priority import merge_priority_into_metadata
from app.scheduling.timeutil import civil_datetime, hours_between, parse_bound, parse_day, parse_hhmm, rfc3339
from app.scheduling.types import BusyInterval, CalendarTask, TaskSpec, parse_windows

logger = logging.getLogger(__name__)

START_DELAY = timedelta(minutes=5)
MAX_FREE_BUSY_DAYS = 62


def create_task(engine: SchedulingEngine, request: TaskCreateRequest) -> TaskView:
    """Create a task, embedding its metadata and avoiding conflicts unless told not to."""
    title = (request.title or "").strip()
    if not title:
        raise ValidationError("title is required")

    config = engine.config
    calendar_id = request.calendar_id or config.calendar_id
    metadata = sanitize_metadata(request.meta)
    priority = engine.compute_priority(metadata, request.priority_score)
    description = encode_description(request.description or "", merge_priority_into_metadata(metadata, priority))
    allow = request.allow_weekend_holiday is True
    base_spec = TaskSpec(
        title=title,
        description=description,
        location=request.location or "",
        creator_email=engine.current_user_email(),
    )

    if request.all_day:
        if not request.date:
            raise ValidationError("date is required for all-day tasks")
        day = parse_day(request.date)
        if not engine.oracle.is_business_day(day, allow):
            day = engine.oracle.next_business_day(day, allow)
        base_spec.all_day = True
        base_spec.start_date = day
        base_spec.end_date = day + timedelta(days=1)
        task = engine.backend.create_task(base_spec, calendar_id)
        logger.info("Created all-day task %s on %s", task.id, day.isoformat())
        return normalize_task(engine, task)

    start, end, slot_day = _requested_times(engine, request)
    duration = _duration_hours(request, start, end)

    if request.auto_avoid_conflict:
        windows = parse_windows(request.business_windows) if request.business_windows else config.default_windows
        prefer = parse_hhmm(request.start_time) if request.start_time else config.default_preferred_start
        slot = engine.slots.find_slot_across_days(
            slot_day,
            prefer,
            duration,
            windows,
            request.min_gap_minutes,
            allow,
            resource_id=calendar_id,
        )
        start, end = slot.start, slot.end
    else:
        if start is None or end is None:
            raise ValidationError("start and end are required when conflict avoidance is off")
        if end <= start:
            end = start + timedelta(hours=1)
        if not allow and not engine.oracle.is_business_day(start.date()):
            shift = engine.oracle.next_business_day(start.date()) - start.date()
            start, end = start + shift, end + shift

    base_spec.all_day = False
    base_spec.start = start
    base_spec.end = end
    task = engine.backend.create_task(base_spec, calendar_id)
    logger.info("Created task %s at %s", task.id, rfc3339(start, engine.tz))
    return normalize_task(engine, task)


def _requested_times(
    engine: SchedulingEngine,
    request: TaskCreateRequest,
) -> Tuple[Optional[datetime], Optional[datetime], date]:
    tz = engine.tz
    if request.date:
        day = parse_day(request.date)
        if request.start_time:
            start = civil_datetime(day, parse_hhmm(request.start_time), tz)
            if request.end_time:
                return start, civil_datetime(day, parse_hhmm(request.end_time), tz), day
            return start, start + timedelta(hours=_positive_or_one(request.duration_hours)), day
        return None, None, day

    start = engine.now() + START_DELAY
    return start, start + timedelta(hours=_positive_or_one(request.duration_hours)), start.date()


def _positive_or_one(value: Optional[float]) -> float:
    return value if value is not None and value > 0 else 1.0


def _duration_hours(request: TaskCreateRequest, start: Optional[datetime], end: Optional[datetime]) -> float:
    if request.duration_hours is not None and request.duration_hours > 0:
        return request.duration_hours
    if start is not None and end is not None and end > start:
        return hours_between(start, end)
    return 1.0


def normalize_task(engine: SchedulingEngine, task: CalendarTask) -> TaskView:
    """View of a task with decoded metadata and a freshly derived priority."""
    decoded = decode_description(task.description)
    meta = None
    priority = None
    if decoded.metadata:
        score = engine.compute_priority(decoded.metadata, decoded.metadata.get("priorityScore"))
        meta = merge_priority_into_metadata(decoded.metadata, score)
        if meta and finite_number(meta.get("priorityScore")) is not None:
            priority = meta["priorityScore"]

    return TaskView(
        id=task.id,
        calendar_id=task.calendar_id,
        title=task.title,
        description=task.description,
        description_plain=decoded.body,
        status=task.status,
        all_day=task.all_day,
        start=_event_time(engine, task.start, task.start_date),
        end=_event_time(engine, task.end, task.end_date),
        location=task.location,
        creator_email=task.creator_email,
        meta=meta,
        priority_score=priority,
    )


def _event_time(engine: SchedulingEngine, instant: Optional[datetime], day: Optional[date]) -> EventTimePayload:
    if instant is not None:
        return EventTimePayload(date_time=rfc3339(instant, engine.tz), time_zone=engine.config.timezone.key)
    if day is not None:
        return EventTimePayload(date=day.isoformat())
    return EventTimePayload()


def list_tasks(
    engine: SchedulingEngine,
    time_min: str,
    time_max: str,
    calendar_id: Optional[str] = None,
    page_token: Optional[str] = None,
) -> Tuple[List[TaskView], Optional[str]]:
    start, end = _parse_range(engine, time_min, time_max)
    page = engine.backend.list_tasks(start, end, calendar_id or engine.config.calendar_id, page_token)
    return [normalize_task(engine, task) for task in page.items], page.next_page_token


def get_task(engine: SchedulingEngine, task_id: str, calendar_id: Optional[str] = None) -> TaskView:
    task = engine.backend.get_task(task_id, calendar_id or engine.config.calendar_id)
    if task is None:
        raise TaskNotFound(task_id)
    return normalize_task(engine, task)


def free_busy(
    engine: SchedulingEngine,
    time_min: str,
    time_max: str,
    calendar_id: Optional[str] = None,
) -> List[BusyInterval]:
    """Busy intervals overlapping the range, gathered day by day."""
    start, end = _parse_range(engine, time_min, time_max)
    first_day, last_day = start.date(), end.date()
    if (last_day - first_day).days > MAX_FREE_BUSY_DAYS:
        raise ValidationError(f"free/busy range is limited to {MAX_FREE_BUSY_DAYS} days")

    seen = set()
    busy: List[BusyInterval] = []
    day = first_day
    while day <= last_day:
        for interval in engine.backend.query_free_busy(day, calendar_id or engine.config.calendar_id):
            if interval.start < end and interval.end > start and interval not in seen:
                seen.add(interval)
                busy.append(interval)
        day += timedelta(days=1)
    busy.sort(key=lambda interval: interval.start)
    return busy


def _parse_range(engine: SchedulingEngine, time_min: str, time_max: str) -> Tuple[datetime, datetime]:
    if not (time_min or "").strip() or not (time_max or "").strip():
        raise ValidationError("time_min and time_max are required")
    start = parse_bound(time_min, engine.tz, end_of_range=False).astimezone(engine.tz)
    end = parse_bound(time_max, engine.tz, end_of_range=True).astimezone(engine.tz)
    if end < start:
        raise ValidationError("time_max must not be before time_min")
    return start, end
