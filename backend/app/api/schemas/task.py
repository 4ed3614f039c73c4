"""Schemas for task creation, listing and nudges."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class EventTimePayload(BaseModel):
    date: Optional[str] = None
    date_time: Optional[str] = None
    time_zone: Optional[str] = None


class TaskView(BaseModel):
    id: str
    calendar_id: str
    title: str
    description: str
    description_plain: str
    status: str
    all_day: bool
    start: EventTimePayload
    end: EventTimePayload
    location: str = ""
    creator_email: str = ""
    meta: Optional[Dict[str, Any]] = None
    priority_score: Optional[float] = None


class TaskCreateRequest(BaseModel):
    title: str = ""
    description: str = ""
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_hours: Optional[float] = None
    all_day: bool = False
    calendar_id: Optional[str] = None
    location: Optional[str] = None
    auto_avoid_conflict: bool = True
    allow_weekend_holiday: bool = False
    min_gap_minutes: Optional[float] = Field(default=None, ge=0)
    business_windows: Optional[List[str]] = None
    meta: Optional[Dict[str, Any]] = None
    priority_score: Optional[Union[float, str]] = None


class TaskResponse(BaseModel):
    task: TaskView
    request_id: str


class TaskListResponse(BaseModel):
    items: List[TaskView]
    next_page_token: Optional[str] = None
    request_id: str


class NudgeContext(BaseModel):
    summary: str
    priority_score: Optional[float] = None
    start: Optional[EventTimePayload] = None


class NudgeResponse(BaseModel):
    first_step: str
    checklist: List[str]
    if_then: List[str]
    context: NudgeContext
    task: TaskView
    request_id: str
