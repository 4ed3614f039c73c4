"""Metric helpers recorded as Opik traces."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, Optional

from app.observability import tracing

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record ``value`` under ``metric:<name>``; no-op when tracing is disabled."""
    if not tracing.get_opik_client():
        return
    payload: Dict[str, Any] = {"value": value, **(metadata or {})}
    with tracing.trace(f"metric:{name}", metadata=payload):
        pass


def log_latency(name: str, started: float, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record milliseconds elapsed since ``started`` (a ``perf_counter()`` reading)."""
    log_metric(f"{name}.latency_ms", (perf_counter() - started) * 1000, metadata)
