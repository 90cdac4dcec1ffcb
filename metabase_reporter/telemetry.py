"""
Stage telemetry for export runs.

Every pipeline stage runs inside a StageTimer, which logs its duration and
appends a StageRecord to the run's history.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageRecord:
    """Outcome of one pipeline stage."""
    state: str
    ok: bool
    duration_ms: float
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class StageTimer:
    """Context manager for timing a stage and recording its outcome."""

    def __init__(self, state: str, history: List[StageRecord]):
        self.state = state
        self.history = history
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        logger.debug(f"[STAGE] {self.state} started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = (time.perf_counter() - self.start_time) * 1000
        ok = exc_type is None
        self.history.append(StageRecord(
            state=self.state,
            ok=ok,
            duration_ms=round(duration_ms, 1),
            error=None if ok else str(exc_val),
        ))
        logger.debug(f"[STAGE] {self.state} {'ok' if ok else 'failed'} in {duration_ms:.0f}ms")
        return False  # Don't suppress exceptions
