"""Operational endpoints for the reschedule sweep."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.deps import get_scheduling_config
from app.api.schemas.jobs import (
    RescheduleErrorPayload,
    RescheduledTaskPayload,
    RescheduleRunRequest,
    RescheduleRunResponse,
)
from app.core.config import settings
from app.db.deps import get_db
from app.observability.tracing import trace
from app.scheduling.errors import ValidationError
from app.scheduling.types import parse_windows
from app.services.job_runner import run_reschedule_sweep

router = APIRouter()


@router.get("/jobs", tags=["jobs"])
def get_jobs_config(request: Request) -> dict:
    request_id = getattr(request.state, "request_id", None)
    config = get_scheduling_config()
    with trace("jobs.config", metadata={"request_id": request_id}, request_id=request_id):
        data = {
            "scheduler_enabled": settings.scheduler_enabled,
            "reschedule": {
                "timezone": config.timezone.key,
                "cutoff": f"{config.cutoff_hour:02d}:00",
                "run_at": f"{settings.reschedule_job_hour:02d}:{settings.reschedule_job_minute:02d}",
                "business_windows": [str(window) for window in config.default_windows],
                "min_gap_minutes": config.default_min_gap_minutes,
            },
        }
    return {**data, "request_id": request_id or ""}


@router.post("/jobs/reschedule-pending", response_model=RescheduleRunResponse, tags=["jobs"])
def reschedule_pending(
    request: Request,
    payload: RescheduleRunRequest,
    db: Session = Depends(get_db),
) -> RescheduleRunResponse:
    """Run the sweep now. Before the cutoff hour it returns without changes."""
    request_id = getattr(request.state, "request_id", None)
    if payload.business_windows:
        try:
            parse_windows(payload.business_windows)
        except ValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    result = run_reschedule_sweep(
        db,
        reference=payload.time,
        windows=payload.business_windows,
        min_gap_minutes=payload.min_gap_minutes,
        allow_weekend_holiday=payload.allow_weekend_holiday,
        calendar_id=payload.calendar_id,
        request_id=request_id,
    )
    return RescheduleRunResponse(
        checked_at=result.checked_at,
        candidates=result.candidates,
        rescheduled=[
            RescheduledTaskPayload(
                id=item.id,
                new_date=item.new_date,
                priority_score=item.priority_score,
                all_day=item.all_day,
                new_start=item.new_start,
                new_end=item.new_end,
            )
            for item in result.rescheduled
        ],
        errors=[RescheduleErrorPayload(id=error.id, message=error.message) for error in result.errors],
        request_id=request_id or "",
    )
