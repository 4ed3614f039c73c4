"""Schemas for slot search and free/busy queries."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SlotSearchRequest(BaseModel):
    date: str
    preferred_start: Optional[str] = None
    duration_hours: float = 1.0
    business_windows: Optional[List[str]] = None
    min_gap_minutes: Optional[float] = Field(default=None, ge=0)
    allow_weekend_holiday: bool = False
    calendar_id: Optional[str] = None


class SlotSearchResponse(BaseModel):
    date: str
    start: datetime
    end: datetime
    request_id: str


class BusyIntervalPayload(BaseModel):
    start: datetime
    end: datetime


class FreeBusyResponse(BaseModel):
    time_zone: str
    busy: List[BusyIntervalPayload]
    request_id: str
