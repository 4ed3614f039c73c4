"""Tracing around API handlers and sweep runs."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from app.observability.client import get_opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Trace = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    calendar_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """Open an Opik trace for the enclosed block; yields ``None`` when tracing is off."""
    client = get_opik_client()
    span: Optional["Trace"] = None

    if client:
        payload = {key: value for key, value in (metadata or {}).items() if value is not None}
        if calendar_id:
            payload.setdefault("calendar_id", calendar_id)
        if request_id:
            payload.setdefault("request_id", request_id)
        try:
            span = client.trace(name=name, metadata=payload or None)
        except Exception as exc:  # pragma: no cover - remote tracing must not break requests
            logger.debug("Could not open trace %s: %s", name, exc)

    try:
        yield span
    except Exception as exc:
        if span:
            try:
                span.update(error_info={"type": type(exc).__name__, "message": str(exc)})
            except Exception:  # pragma: no cover
                logger.debug("Could not attach error to trace %s", name, exc_info=True)
        raise
    finally:
        if span:
            try:
                span.end()
            except Exception:  # pragma: no cover
                logger.debug("Could not close trace %s", name, exc_info=True)
