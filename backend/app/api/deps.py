"""Shared FastAPI dependencies for the scheduling routes."""
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.deps import get_db
from app.scheduling.config import SchedulingConfig
from app.scheduling.engine import SchedulingEngine
from app.services.calendar_store import build_engine


@lru_cache
def get_scheduling_config() -> SchedulingConfig:
    return SchedulingConfig.from_settings(settings)


def get_engine(
    db: Session = Depends(get_db),
    config: SchedulingConfig = Depends(get_scheduling_config),
) -> SchedulingEngine:
    return build_engine(db, config)
