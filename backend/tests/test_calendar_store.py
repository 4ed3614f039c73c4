from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.models.calendar_event import CalendarEvent
from app.db.models.holiday import Holiday
from app.scheduling.config import SchedulingConfig
from app.scheduling.errors import TaskNotFound, ValidationError
from app.scheduling.types import TaskSpec
from app.services.calendar_store import SqlCalendarBackend, SqlHolidayOracle, build_engine
from conftest import TOKYO, at

MONDAY = date(2030, 1, 7)


def _session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    CalendarEvent.__table__.create(bind=engine)
    Holiday.__table__.create(bind=engine)
    return TestingSession()


@pytest.fixture()
def db():
    session = _session()
    try:
        yield session
    finally:
        session.close()


def _timed(backend, title, start, end, resource_id="primary"):
    return backend.create_task(TaskSpec(title=title, all_day=False, start=start, end=end), resource_id)


def test_timed_task_round_trips_in_business_timezone(db) -> None:
    backend = SqlCalendarBackend(db, TOKYO)

    created = _timed(backend, "Review", at(MONDAY, 10), at(MONDAY, 11))
    fetched = backend.get_task(created.id, "primary")

    assert fetched.start == at(MONDAY, 10)
    assert fetched.start.utcoffset() == timedelta(hours=9)
    assert fetched.end == at(MONDAY, 11)
    assert fetched.status == "confirmed"


def test_free_busy_covers_the_civil_day(db) -> None:
    backend = SqlCalendarBackend(db, TOKYO)
    _timed(backend, "Late", at(MONDAY, 23, 30), at(MONDAY + timedelta(days=1), 0, 30))
    _timed(backend, "Other calendar", at(MONDAY, 9), at(MONDAY, 10), resource_id="team")
    backend.create_task(TaskSpec(title="Holiday trip", all_day=True, start_date=MONDAY, end_date=MONDAY + timedelta(days=1)), "primary")

    busy = backend.query_free_busy(MONDAY, "primary")

    assert len(busy) == 1
    assert busy[0].start == at(MONDAY, 23, 30)
    assert busy[0].start.tzinfo is not None


def test_cancelled_tasks_are_hidden(db) -> None:
    backend = SqlCalendarBackend(db, TOKYO)
    task = _timed(backend, "Dropped", at(MONDAY, 9), at(MONDAY, 10))
    backend.patch_task(task.id, TaskSpec(status="cancelled"), "primary")

    page = backend.list_tasks(at(MONDAY, 0), at(MONDAY, 23, 59), "primary")

    assert page.items == []
    assert backend.query_free_busy(MONDAY, "primary") == []


def test_listing_includes_all_day_tasks_and_pages(db) -> None:
    backend = SqlCalendarBackend(db, TOKYO, page_size=2)
    backend.create_task(TaskSpec(title="All day", all_day=True, start_date=MONDAY, end_date=MONDAY + timedelta(days=1)), "primary")
    _timed(backend, "First", at(MONDAY, 9), at(MONDAY, 10))
    _timed(backend, "Second", at(MONDAY, 13), at(MONDAY, 14))

    first = backend.list_tasks(at(MONDAY, 0), at(MONDAY, 23, 59), "primary")
    second = backend.list_tasks(at(MONDAY, 0), at(MONDAY, 23, 59), "primary", first.next_page_token)

    assert [task.title for task in first.items] == ["All day", "First"]
    assert first.next_page_token == "2"
    assert [task.title for task in second.items] == ["Second"]
    assert second.next_page_token is None


def test_invalid_page_token_is_rejected(db) -> None:
    backend = SqlCalendarBackend(db, TOKYO)

    with pytest.raises(ValidationError):
        backend.list_tasks(at(MONDAY, 0), at(MONDAY, 23, 59), "primary", "next")


def test_patch_unknown_task_raises(db) -> None:
    backend = SqlCalendarBackend(db, TOKYO)

    with pytest.raises(TaskNotFound):
        backend.patch_task("missing", TaskSpec(title="x"), "primary")


def test_tasks_are_scoped_to_their_calendar(db) -> None:
    backend = SqlCalendarBackend(db, TOKYO)
    task = _timed(backend, "Private", at(MONDAY, 9), at(MONDAY, 10), resource_id="team")

    assert backend.get_task(task.id, "primary") is None
    assert backend.get_task(task.id, "team").title == "Private"


def test_patch_moves_task_and_keeps_other_fields(db) -> None:
    backend = SqlCalendarBackend(db, TOKYO)
    task = backend.create_task(
        TaskSpec(title="Draft", description="notes", location="Desk", all_day=False, start=at(MONDAY, 9), end=at(MONDAY, 10)),
        "primary",
    )

    patched = backend.patch_task(task.id, TaskSpec(start=at(MONDAY, 14), end=at(MONDAY, 15)), "primary")

    assert patched.start == at(MONDAY, 14)
    assert (patched.title, patched.description, patched.location) == ("Draft", "notes", "Desk")


def test_holiday_oracle_reads_its_calendar(db) -> None:
    db.add(Holiday(calendar_id="jp", day=MONDAY, name="Coming of Age Day"))
    db.add(Holiday(calendar_id="us", day=MONDAY + timedelta(days=1), name="Other"))
    db.commit()
    oracle = SqlHolidayOracle(db, "jp")

    assert oracle.is_holiday(MONDAY) is True
    assert oracle.is_holiday(MONDAY + timedelta(days=1)) is False


def test_build_engine_wires_holidays_and_clock(db) -> None:
    db.add(Holiday(calendar_id="jp", day=MONDAY, name="Coming of Age Day"))
    db.commit()
    config = SchedulingConfig(holiday_calendar_id="jp")
    fixed = datetime(2030, 1, 7, 1, 0, tzinfo=timezone.utc)

    engine = build_engine(db, config, clock=lambda: fixed)

    assert engine.oracle.is_business_day(MONDAY) is False
    assert engine.today() == MONDAY
    assert engine.now().hour == 10
