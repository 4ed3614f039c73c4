"""Translation of engine errors into HTTP responses."""
from __future__ import annotations

from fastapi import HTTPException, status

from app.scheduling.errors import (
    BackendUnavailable,
    NoSlotAvailable,
    SchedulingError,
    TaskNotFound,
    ValidationError,
)

_STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (TaskNotFound, status.HTTP_404_NOT_FOUND),
    (NoSlotAvailable, status.HTTP_409_CONFLICT),
    (BackendUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_error(exc: SchedulingError) -> HTTPException:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc) or "internal error")
