"""Error taxonomy for the scheduling engine."""
from __future__ import annotations


class SchedulingError(Exception):
    """Base class for errors surfaced by the scheduling engine."""


class ValidationError(SchedulingError):
    """Bad or missing input. Surfaced to the caller, never retried."""


class NoSlotAvailable(SchedulingError):
    """The business-day search horizon was exhausted without a free slot."""


class BackendUnavailable(SchedulingError):
    """An external collaborator (calendar store, holiday lookup) failed."""


class TaskNotFound(SchedulingError):
    """The requested task does not exist in the calendar backend."""

    def __init__(self, task_id: str):
        super().__init__(f"task not found: {task_id}")
        self.task_id = task_id


class PerTaskRescheduleFailure(SchedulingError):
    """One task could not be relocated during a sweep. Collected, never fatal."""

    def __init__(self, task_id: str, message: str):
        super().__init__(message)
        self.task_id = task_id
        self.message = message
