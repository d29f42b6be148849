"""
Thread-safe per-stage start/end recorder for one run.

Host callbacks may report different stages from different threads. A stage
is timed from its first start to its next end; unknown or duplicate events
are ignored rather than raised, since the build being observed must never
fail because of the tracker.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from ..models import TOTAL_STAGE

logger = logging.getLogger(__name__)


def classify_stage(millis: int, fast_millis: int, warn_millis: int) -> str:
    """Speed class of a stage duration: "fast", "warn" or "slow"."""
    if millis <= fast_millis:
        return "fast"
    if millis <= warn_millis:
        return "warn"
    return "slow"


class StageTimer:
    """Records start/end timestamps (epoch millis) per named stage."""

    def __init__(self):
        self._starts: Dict[str, int] = {}
        self._durations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def record_start(self, name: str, timestamp: int) -> bool:
        """Store the start time unless the stage is already running.

        Returns True when this call armed the stage.
        """
        if not name or name == TOTAL_STAGE:
            logger.debug("Ignoring start for reserved or empty stage name %r", name)
            return False
        with self._lock:
            if name in self._starts:
                return False
            self._starts[name] = int(timestamp)
            return True

    def record_end(self, name: str, timestamp: int) -> Optional[int]:
        """Complete a running stage and return its duration in millis.

        An end with no matching start is dropped and returns None.
        """
        with self._lock:
            start = self._starts.pop(name, None)
            if start is None:
                return None
            duration = int(timestamp) - start
            if duration < 0:
                logger.debug("Stage %s ended before it started; clamping to 0", name)
                duration = 0
            self._durations[name] = duration
            return duration

    def is_running(self, name: str) -> bool:
        with self._lock:
            return name in self._starts

    def running_stages(self) -> list[str]:
        with self._lock:
            return list(self._starts)

    def durations(self, total_millis: Optional[int] = None) -> Dict[str, int]:
        """Snapshot of completed stage durations in completion order.

        When ``total_millis`` is given it is added under the reserved
        ``"total"`` key.
        """
        with self._lock:
            result = dict(self._durations)
        if total_millis is not None:
            result[TOTAL_STAGE] = max(0, int(total_millis))
        return result
