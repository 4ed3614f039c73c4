"""Business-aware scheduling engine."""

from app.scheduling.config import SchedulingConfig
from app.scheduling.engine import SchedulingEngine
from app.scheduling.errors import (
    BackendUnavailable,
    NoSlotAvailable,
    PerTaskRescheduleFailure,
    SchedulingError,
    TaskNotFound,
    ValidationError,
)

__all__ = [
    "BackendUnavailable",
    "NoSlotAvailable",
    "PerTaskRescheduleFailure",
    "SchedulingConfig",
    "SchedulingEngine",
    "SchedulingError",
    "TaskNotFound",
    "ValidationError",
]
