"""Schemas for the reschedule sweep endpoints."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class RescheduleRunRequest(BaseModel):
    time: Optional[datetime] = None
    business_windows: Optional[List[str]] = None
    min_gap_minutes: Optional[float] = Field(default=None, ge=0)
    allow_weekend_holiday: bool = False
    calendar_id: Optional[str] = None


class RescheduledTaskPayload(BaseModel):
    id: str
    new_date: date
    priority_score: float
    all_day: bool = False
    new_start: Optional[datetime] = None
    new_end: Optional[datetime] = None


class RescheduleErrorPayload(BaseModel):
    id: str
    message: str


class RescheduleRunResponse(BaseModel):
    checked_at: str
    candidates: int
    rescheduled: List[RescheduledTaskPayload]
    errors: List[RescheduleErrorPayload]
    request_id: str
