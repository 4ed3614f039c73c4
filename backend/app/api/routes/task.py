"""Task API routes."""
from __future__ import annotations

from time import perf_counter
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from app.api.deps import get_engine
from app.api.errors import to_http_error
from app.api.schemas.task import (
    NudgeContext,
    NudgeResponse,
    TaskCreateRequest,
    TaskListResponse,
    TaskResponse,
)
from app.observability.metrics import log_latency, log_metric
from app.observability.tracing import trace
from app.scheduling.engine import SchedulingEngine
from app.scheduling.errors import SchedulingError
from app.services.nudge import generate_nudge
from app.services.task_service import create_task, get_task, list_tasks

router = APIRouter()


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED, tags=["tasks"])
def create_task_route(
    payload: TaskCreateRequest,
    http_request: Request,
    engine: SchedulingEngine = Depends(get_engine),
) -> TaskResponse:
    """Create a task, finding a free slot unless auto_avoid_conflict is false."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": "/tasks",
        "all_day": payload.all_day,
        "auto_avoid_conflict": payload.auto_avoid_conflict,
        "has_meta": bool(payload.meta),
    }

    start = perf_counter()
    with trace("task.create", metadata=metadata, calendar_id=payload.calendar_id, request_id=request_id):
        try:
            view = create_task(engine, payload)
        except SchedulingError as exc:
            log_metric("task.create.failure", 1, metadata={"error": type(exc).__name__})
            raise to_http_error(exc) from exc

    log_metric("task.create.success", 1, metadata={"all_day": payload.all_day})
    log_latency("task.create", start)
    return TaskResponse(task=view, request_id=request_id or "")


@router.get("/tasks", response_model=TaskListResponse, tags=["tasks"])
def list_tasks_route(
    http_request: Request,
    time_min: str = Query(..., description="YYYY-MM-DD or RFC 3339 lower bound"),
    time_max: str = Query(..., description="YYYY-MM-DD or RFC 3339 upper bound"),
    calendar_id: Optional[str] = Query(default=None),
    page_token: Optional[str] = Query(default=None),
    engine: SchedulingEngine = Depends(get_engine),
) -> TaskListResponse:
    """List tasks overlapping a time range, with decoded metadata and priority."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/tasks", "time_min": time_min, "time_max": time_max, "page_token": page_token}

    with trace("task.list", metadata=metadata, calendar_id=calendar_id, request_id=request_id):
        try:
            items, next_page_token = list_tasks(engine, time_min, time_max, calendar_id, page_token)
        except SchedulingError as exc:
            raise to_http_error(exc) from exc

    log_metric("task.list.count", len(items), metadata={"calendar_id": calendar_id})
    return TaskListResponse(items=items, next_page_token=next_page_token, request_id=request_id or "")


@router.get("/tasks/{task_id}", response_model=TaskResponse, tags=["tasks"])
def get_task_route(
    task_id: str,
    http_request: Request,
    calendar_id: Optional[str] = Query(default=None),
    engine: SchedulingEngine = Depends(get_engine),
) -> TaskResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("task.get", metadata={"task_id": task_id}, calendar_id=calendar_id, request_id=request_id):
        try:
            view = get_task(engine, task_id, calendar_id)
        except SchedulingError as exc:
            raise to_http_error(exc) from exc
    return TaskResponse(task=view, request_id=request_id or "")


@router.get("/tasks/{task_id}/nudge", response_model=NudgeResponse, tags=["tasks"])
def nudge_task_route(
    task_id: str,
    http_request: Request,
    calendar_id: Optional[str] = Query(default=None),
    engine: SchedulingEngine = Depends(get_engine),
) -> NudgeResponse:
    """Suggest a first step, a checklist and if-then plans for a task."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("task.nudge", metadata={"task_id": task_id}, calendar_id=calendar_id, request_id=request_id):
        try:
            view = get_task(engine, task_id, calendar_id)
        except SchedulingError as exc:
            raise to_http_error(exc) from exc
        nudge = generate_nudge(view)

    log_metric("task.nudge.success", 1, metadata={"task_id": task_id})
    return NudgeResponse(
        first_step=nudge.first_step,
        checklist=nudge.checklist,
        if_then=nudge.if_then,
        context=NudgeContext(summary=nudge.summary, priority_score=nudge.priority_score, start=nudge.start),
        task=view,
        request_id=request_id or "",
    )
