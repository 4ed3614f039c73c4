"""Free/busy and slot search routes."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.api.deps import get_engine
from app.api.errors import to_http_error
from app.api.schemas.scheduling import (
    BusyIntervalPayload,
    FreeBusyResponse,
    SlotSearchRequest,
    SlotSearchResponse,
)
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.scheduling.engine import SchedulingEngine
from app.scheduling.errors import SchedulingError
from app.scheduling.timeutil import parse_day, parse_hhmm
from app.scheduling.types import SlotRequest, parse_windows
from app.services.task_service import free_busy

router = APIRouter()


@router.get("/freebusy", response_model=FreeBusyResponse, tags=["scheduling"])
def free_busy_route(
    http_request: Request,
    time_min: str = Query(...),
    time_max: str = Query(...),
    calendar_id: Optional[str] = Query(default=None),
    engine: SchedulingEngine = Depends(get_engine),
) -> FreeBusyResponse:
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"time_min": time_min, "time_max": time_max}
    with trace("scheduling.freebusy", metadata=metadata, calendar_id=calendar_id, request_id=request_id):
        try:
            busy = free_busy(engine, time_min, time_max, calendar_id)
        except SchedulingError as exc:
            raise to_http_error(exc) from exc

    return FreeBusyResponse(
        time_zone=engine.config.timezone.key,
        busy=[BusyIntervalPayload(start=b.start.astimezone(engine.tz), end=b.end.astimezone(engine.tz)) for b in busy],
        request_id=request_id or "",
    )


@router.post("/slots/search", response_model=SlotSearchResponse, tags=["scheduling"])
def search_slot_route(
    payload: SlotSearchRequest,
    http_request: Request,
    engine: SchedulingEngine = Depends(get_engine),
) -> SlotSearchResponse:
    """Earliest free slot from the given date, rolling over up to 14 business days."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"date": payload.date, "duration_hours": payload.duration_hours}
    with trace("scheduling.slot_search", metadata=metadata, calendar_id=payload.calendar_id, request_id=request_id):
        try:
            request = SlotRequest(
                day=parse_day(payload.date),
                preferred_start=parse_hhmm(payload.preferred_start) if payload.preferred_start else None,
                duration_hours=payload.duration_hours,
                windows=parse_windows(payload.business_windows or ()),
                min_gap_minutes=payload.min_gap_minutes,
                allow_weekend_holiday=payload.allow_weekend_holiday,
            )
            slot = engine.find_slot(request, payload.calendar_id)
        except SchedulingError as exc:
            log_metric("scheduling.slot_search.failure", 1, metadata={"error": type(exc).__name__})
            raise to_http_error(exc) from exc

    log_metric("scheduling.slot_search.success", 1, metadata={"rolled_days": (slot.day - request.day).days})
    return SlotSearchResponse(date=slot.day.isoformat(), start=slot.start, end=slot.end, request_id=request_id or "")
