"""Batch runner for the daily reschedule sweep."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from sqlalchemy.orm import Session

from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.scheduling.sweep import SweepResult
from app.services.calendar_store import build_engine

logger = logging.getLogger(__name__)


def run_reschedule_sweep(
    db: Session,
    *,
    reference: Optional[datetime] = None,
    windows: Optional[Sequence[str]] = None,
    min_gap_minutes: Optional[float] = None,
    allow_weekend_holiday: bool = False,
    calendar_id: Optional[str] = None,
    request_id: Optional[str] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> SweepResult:
    engine = build_engine(db, clock=clock)
    calendar_id = calendar_id or engine.config.calendar_id
    metadata = {
        "reference": reference.isoformat() if reference else None,
        "allow_weekend_holiday": allow_weekend_holiday,
    }
    with trace("reschedule.sweep", metadata=metadata, calendar_id=calendar_id, request_id=request_id) as sweep_trace:
        result = engine.reschedule_pending(
            reference,
            windows=windows,
            min_gap_minutes=min_gap_minutes,
            allow_weekend_holiday=allow_weekend_holiday,
            calendar_id=calendar_id,
        )
        if sweep_trace:
            sweep_trace.update(
                metadata={
                    "checked_at": result.checked_at,
                    "candidates": result.candidates,
                    "rescheduled": len(result.rescheduled),
                    "errors": len(result.errors),
                }
            )

    log_metric("reschedule.sweep.rescheduled", len(result.rescheduled), metadata={"calendar_id": calendar_id})
    log_metric("reschedule.sweep.errors", len(result.errors), metadata={"calendar_id": calendar_id})
    if result.errors:
        logger.warning(
            "Reschedule sweep finished with %s failed task(s): %s",
            len(result.errors),
            ", ".join(error.id or "?" for error in result.errors),
        )
    return result
