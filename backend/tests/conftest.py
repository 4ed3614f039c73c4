"""In-memory collaborators for engine-level tests."""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set
from zoneinfo import ZoneInfo

import pytest

from app.scheduling.config import SchedulingConfig
from app.scheduling.engine import SchedulingEngine
from app.scheduling.errors import BackendUnavailable, TaskNotFound
from app.scheduling.timeutil import start_of_day
from app.scheduling.types import BusyInterval, CalendarTask, TaskPage, TaskSpec

TOKYO = ZoneInfo("Asia/Tokyo")


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=TOKYO)


class FakeCalendar:
    def __init__(self, page_size: int = 250):
        self.tasks: Dict[str, CalendarTask] = {}
        self.page_size = page_size
        self.fail_patch: Set[str] = set()
        self.fail_listing = False
        self.fail_free_busy = False
        self.patches: List[str] = []
        self._next_id = 0

    def add(self, task: CalendarTask) -> CalendarTask:
        self.tasks[task.id] = task
        return task

    def query_free_busy(self, day: date, resource_id: str) -> List[BusyInterval]:
        if self.fail_free_busy:
            raise BackendUnavailable("free/busy query unavailable")
        lower, upper = start_of_day(day, TOKYO), start_of_day(day + timedelta(days=1), TOKYO)
        return [
            BusyInterval(task.start, task.end)
            for task in self.tasks.values()
            if not task.all_day and task.status != "cancelled" and task.start < upper and task.end > lower
        ]

    def list_tasks(self, time_min, time_max, resource_id, page_token=None) -> TaskPage:
        if self.fail_listing:
            raise BackendUnavailable("calendar listing unavailable")
        matches = [
            task
            for task in self.tasks.values()
            if task.start_instant(TOKYO) is not None
            and task.start_instant(TOKYO) <= time_max
            and task.end_instant(TOKYO) > time_min
        ]
        matches.sort(key=lambda task: (task.start_instant(TOKYO), task.id))
        offset = int(page_token or 0)
        end = offset + self.page_size
        return TaskPage(items=matches[offset:end], next_page_token=str(end) if end < len(matches) else None)

    def create_task(self, spec: TaskSpec, resource_id: str) -> CalendarTask:
        self._next_id += 1
        task = CalendarTask(id=f"task-{self._next_id}", calendar_id=resource_id)
        self._apply(task, spec)
        return self.add(task)

    def patch_task(self, task_id: str, spec: TaskSpec, resource_id: str) -> CalendarTask:
        if task_id in self.fail_patch:
            raise BackendUnavailable(f"patch rejected for {task_id}")
        task = self.tasks.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        self._apply(task, spec)
        self.patches.append(task_id)
        return task

    def get_task(self, task_id: str, resource_id: str) -> Optional[CalendarTask]:
        return self.tasks.get(task_id)

    @staticmethod
    def _apply(task: CalendarTask, spec: TaskSpec) -> None:
        for name, value in vars(spec).items():
            if value is not None:
                setattr(task, name, value)


class FakeHolidays:
    def __init__(self, days: Iterable[date] = (), fail: bool = False):
        self.days = set(days)
        self.fail = fail
        self.calls: List[date] = []

    def is_holiday(self, day: date) -> bool:
        self.calls.append(day)
        if self.fail:
            raise BackendUnavailable("holiday calendar unreachable")
        return day in self.days


@pytest.fixture()
def config() -> SchedulingConfig:
    return SchedulingConfig()


@pytest.fixture()
def calendar() -> FakeCalendar:
    return FakeCalendar()


@pytest.fixture()
def holidays() -> FakeHolidays:
    return FakeHolidays()


@pytest.fixture()
def engine(config, calendar, holidays) -> SchedulingEngine:
    return SchedulingEngine(config, calendar, holidays=holidays)
