"""Collaborator contracts the engine depends on."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Protocol

from app.scheduling.types import BusyInterval, CalendarTask, TaskPage, TaskSpec


class CalendarBackend(Protocol):
    def query_free_busy(self, day: date, resource_id: str) -> List[BusyInterval]:
        ...

    def list_tasks(
        self,
        time_min: datetime,
        time_max: datetime,
        resource_id: str,
        page_token: Optional[str] = None,
    ) -> TaskPage:
        ...

    def create_task(self, spec: TaskSpec, resource_id: str) -> CalendarTask:
        ...

    def patch_task(self, task_id: str, spec: TaskSpec, resource_id: str) -> CalendarTask:
        ...

    def get_task(self, task_id: str, resource_id: str) -> Optional[CalendarTask]:
        ...


class HolidayOracle(Protocol):
    def is_holiday(self, day: date) -> bool:
        ...


class Identity(Protocol):
    def current_user_email(self) -> str:
        ...
