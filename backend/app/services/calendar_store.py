"""Relational implementations of the calendar backend, holiday oracle and identity."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Callable, List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models.calendar_event import CalendarEvent
from app.db.models.holiday import Holiday
from app.scheduling.config import SchedulingConfig
from app.scheduling.engine import SchedulingEngine
from app.scheduling.errors import BackendUnavailable, TaskNotFound, ValidationError
from app.scheduling.timeutil import start_of_day, to_civil, utc
from app.scheduling.types import BusyInterval, CalendarTask, TaskPage, TaskSpec

logger = logging.getLogger(__name__)

PAGE_SIZE = 250
CANCELLED = "cancelled"


class SqlCalendarBackend:
    """Calendar backend over the ``calendar_events`` table.

    Timed events are stored in UTC; all-day events carry civil dates with an
    exclusive end. All-day events do not block free/busy.
    """

    def __init__(self, db: Session, tz: tzinfo, page_size: int = PAGE_SIZE):
        self.db = db
        self.tz = tz
        self.page_size = page_size

    def query_free_busy(self, day: date, resource_id: str) -> List[BusyInterval]:
        return self.busy_between(start_of_day(day, self.tz), start_of_day(day + timedelta(days=1), self.tz), resource_id)

    def busy_between(self, time_min: datetime, time_max: datetime, resource_id: str) -> List[BusyInterval]:
        stmt = (
            select(CalendarEvent)
            .where(
                CalendarEvent.calendar_id == resource_id,
                CalendarEvent.status != CANCELLED,
                CalendarEvent.all_day.is_(False),
                CalendarEvent.start_at < utc(time_max),
                CalendarEvent.end_at > utc(time_min),
            )
            .order_by(CalendarEvent.start_at)
        )
        rows = self._execute(stmt, "free/busy query")
        return [BusyInterval(start=utc(row.start_at), end=utc(row.end_at)) for row in rows]

    def list_tasks(
        self,
        time_min: datetime,
        time_max: datetime,
        resource_id: str,
        page_token: Optional[str] = None,
    ) -> TaskPage:
        offset = _parse_page_token(page_token)
        first_day = to_civil(time_min, self.tz).date()
        last_day = to_civil(time_max, self.tz).date()
        stmt = select(CalendarEvent).where(
            CalendarEvent.calendar_id == resource_id,
            CalendarEvent.status != CANCELLED,
            or_(
                and_(
                    CalendarEvent.all_day.is_(False),
                    CalendarEvent.start_at < utc(time_max),
                    CalendarEvent.end_at > utc(time_min),
                ),
                and_(
                    CalendarEvent.all_day.is_(True),
                    CalendarEvent.start_date <= last_day,
                    CalendarEvent.end_date > first_day,
                ),
            ),
        )
        tasks = [self._to_task(row) for row in self._execute(stmt, "task listing")]
        floor = datetime.min.replace(tzinfo=timezone.utc)
        tasks.sort(key=lambda task: (task.start_instant(self.tz) or floor, task.id))

        page = tasks[offset: offset + self.page_size]
        next_offset = offset + self.page_size
        return TaskPage(
            items=page,
            next_page_token=str(next_offset) if next_offset < len(tasks) else None,
        )

    def create_task(self, spec: TaskSpec, resource_id: str) -> CalendarTask:
        row = CalendarEvent(calendar_id=resource_id, title=spec.title or "", description="", location="")
        _apply_spec(row, spec)
        return self._save(row, "create task")

    def patch_task(self, task_id: str, spec: TaskSpec, resource_id: str) -> CalendarTask:
        row = self._load(task_id, resource_id)
        if row is None:
            raise TaskNotFound(task_id)
        _apply_spec(row, spec)
        return self._save(row, "patch task")

    def get_task(self, task_id: str, resource_id: str) -> Optional[CalendarTask]:
        row = self._load(task_id, resource_id)
        return self._to_task(row) if row is not None else None

    def _load(self, task_id: str, resource_id: str) -> Optional[CalendarEvent]:
        try:
            row = self.db.get(CalendarEvent, task_id)
        except SQLAlchemyError as exc:
            raise BackendUnavailable(f"task lookup failed: {exc}") from exc
        if row is None or row.calendar_id != resource_id:
            return None
        return row

    def _save(self, row: CalendarEvent, action: str) -> CalendarTask:
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Calendar store could not %s: %s", action, exc)
            raise BackendUnavailable(f"{action} failed: {exc}") from exc
        return self._to_task(row)

    def _execute(self, stmt, action: str) -> List[CalendarEvent]:
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise BackendUnavailable(f"{action} failed: {exc}") from exc

    def _to_task(self, row: CalendarEvent) -> CalendarTask:
        return CalendarTask(
            id=row.id,
            title=row.title or "",
            description=row.description or "",
            status=row.status or "confirmed",
            all_day=bool(row.all_day),
            start=to_civil(utc(row.start_at), self.tz) if row.start_at else None,
            end=to_civil(utc(row.end_at), self.tz) if row.end_at else None,
            start_date=row.start_date,
            end_date=row.end_date,
            calendar_id=row.calendar_id,
            location=row.location or "",
            creator_email=row.creator_email or "",
        )


def _apply_spec(row: CalendarEvent, spec: TaskSpec) -> None:
    if spec.title is not None:
        row.title = spec.title
    if spec.description is not None:
        row.description = spec.description
    if spec.location is not None:
        row.location = spec.location
    if spec.status is not None:
        row.status = spec.status
    if spec.creator_email is not None:
        row.creator_email = spec.creator_email
    if spec.all_day is not None:
        row.all_day = spec.all_day
    if spec.start is not None:
        row.start_at = utc(spec.start)
    if spec.end is not None:
        row.end_at = utc(spec.end)
    if spec.start_date is not None:
        row.start_date = spec.start_date
    if spec.end_date is not None:
        row.end_date = spec.end_date


def _parse_page_token(page_token: Optional[str]) -> int:
    if not page_token:
        return 0
    try:
        offset = int(page_token)
    except ValueError as exc:
        raise ValidationError(f"invalid page token: {page_token!r}") from exc
    if offset < 0:
        raise ValidationError(f"invalid page token: {page_token!r}")
    return offset


class SqlHolidayOracle:
    """Holiday lookups against the ``holidays`` table for one holiday calendar."""

    def __init__(self, db: Session, calendar_id: str):
        self.db = db
        self.calendar_id = calendar_id

    def is_holiday(self, day: date) -> bool:
        stmt = select(Holiday.id).where(Holiday.calendar_id == self.calendar_id, Holiday.day == day).limit(1)
        try:
            return self.db.scalar(stmt) is not None
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise BackendUnavailable(f"holiday lookup failed: {exc}") from exc


class SettingsIdentity:
    def __init__(self, email: str):
        self.email = email

    def current_user_email(self) -> str:
        return self.email or ""


def build_engine(
    db: Session,
    config: Optional[SchedulingConfig] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> SchedulingEngine:
    """Compose a scheduling engine over the relational store."""
    config = config or SchedulingConfig.from_settings(settings)
    return SchedulingEngine(
        config,
        SqlCalendarBackend(db, config.timezone),
        holidays=SqlHolidayOracle(db, config.holiday_calendar_id),
        identity=SettingsIdentity(settings.owner_email),
        clock=clock,
    )
