"""Dedicated APScheduler worker running the daily reschedule sweep."""
from __future__ import annotations

import logging
import signal
import threading
from uuid import uuid4

from apscheduler.schedulers.background import BackgroundScheduler

from app.core.config import settings
from app.core.context import request_id_ctx_var, set_request_id
from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.observability.client import init_opik
from app.services.job_runner import run_reschedule_sweep


logger = logging.getLogger(__name__)

RESCHEDULE_JOB_ID = "reschedule_pending_job"


def main() -> None:
    configure_logging(log_level=settings.log_level)
    init_opik()
    logger.info("Scheduler worker starting (enabled=%s)", settings.scheduler_enabled)

    scheduler = BackgroundScheduler(timezone=settings.business_timezone)

    if settings.scheduler_enabled:
        _register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            logger.info("Running reschedule sweep once on startup")
            _run_reschedule_job()
    else:
        logger.warning("Scheduler disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Scheduler worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def _register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        _run_reschedule_job,
        trigger="cron",
        hour=settings.reschedule_job_hour,
        minute=settings.reschedule_job_minute,
        id=RESCHEDULE_JOB_ID,
        replace_existing=True,
    )
    logger.info(
        "Registered reschedule job (daily at %02d:%02d %s)",
        settings.reschedule_job_hour,
        settings.reschedule_job_minute,
        settings.business_timezone,
    )


def _run_reschedule_job() -> None:
    run_id = f"sweep-{uuid4().hex[:12]}"
    token = set_request_id(run_id)
    session = SessionLocal()
    try:
        result = run_reschedule_sweep(session, request_id=run_id)
        logger.info(
            "Reschedule job complete: candidates=%s, rescheduled=%s, errors=%s",
            result.candidates,
            len(result.rescheduled),
            len(result.errors),
        )
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Reschedule job failed")
    finally:
        session.close()
        request_id_ctx_var.reset(token)


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
