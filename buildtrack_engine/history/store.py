"""
Bounded, file-backed history of past run summaries.

The file is a JSON list of records, oldest first::

    [
      {"timestamp": "2026-10-19T10:15:00", "totalMillis": 12400,
       "peakMemoryBytes": 268435456, "avgCpuFraction": 0.42},
      ...
    ]

Loading never fails: a missing or unreadable file yields an empty history
and malformed records are skipped. Saving trims to capacity and replaces the
file atomically so a crash mid-write leaves the previous file intact.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..exceptions import HistoryFormatError
from ..models import RunSummary
from ..resources.data_models import ResourceAggregate

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 20

# Keys written by older tracker versions
_LEGACY_KEYS = {
    "totalTime": "totalMillis",
    "memoryUsage": "peakMemoryBytes",
    "cpuUsage": "avgCpuFraction",
}


def _millis(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"totalMillis must be a number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"totalMillis must be whole milliseconds, got {value!r}")
    return int(value)


def summary_to_record(summary: RunSummary) -> Dict[str, Any]:
    """Persisted form of a run summary."""
    return {
        "timestamp": summary.timestamp.isoformat(),
        "totalMillis": summary.total_millis,
        "peakMemoryBytes": summary.resource_aggregate.peak_memory_bytes,
        "avgCpuFraction": summary.resource_aggregate.avg_cpu_fraction,
    }


def record_to_summary(record: Any) -> RunSummary:
    """Parse one persisted record, raising HistoryFormatError if malformed."""
    if not isinstance(record, dict):
        raise HistoryFormatError(f"History record is not an object: {record!r}")

    data = dict(record)
    for old, new in _LEGACY_KEYS.items():
        if old in data and new not in data:
            data[new] = data[old]

    try:
        timestamp = datetime.fromisoformat(str(data["timestamp"]))
        total_millis = _millis(data["totalMillis"])
        peak_memory = int(data.get("peakMemoryBytes", 0) or 0)
        avg_cpu = float(data.get("avgCpuFraction", 0.0) or 0.0)
    except (KeyError, TypeError, ValueError) as e:
        raise HistoryFormatError(
            f"Malformed history record: {record!r}", original_exception=e
        ) from e

    if total_millis < 0:
        raise HistoryFormatError(f"Negative totalMillis in history record: {record!r}")

    return RunSummary(
        timestamp=timestamp,
        total_millis=total_millis,
        resource_aggregate=ResourceAggregate(
            peak_memory_bytes=peak_memory,
            avg_cpu_fraction=min(1.0, max(0.0, avg_cpu)),
        ),
    )


class HistoryStore:
    """In-memory run history with load/save against a JSON file."""

    def __init__(self, entries: Optional[Iterable[RunSummary]] = None):
        self._entries: List[RunSummary] = list(entries or [])

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RunSummary]:
        return iter(list(self._entries))

    @property
    def entries(self) -> List[RunSummary]:
        """Oldest-first copy of the stored summaries (same objects)."""
        return list(self._entries)

    def load(self, path: Path | str) -> List[RunSummary]:
        """Replace the in-memory history with the contents of ``path``."""
        p = Path(path)
        self._entries = []

        try:
            if not p.exists():
                logger.debug("No history file at %s; starting with empty history", p)
                return self.entries
            with open(p, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning("Could not read build history %s: %s", p, e)
            return self.entries

        if isinstance(raw, dict) and isinstance(raw.get("builds"), list):
            raw = raw["builds"]
        if not isinstance(raw, list):
            logger.warning("Ignoring build history %s: expected a list of runs", p)
            return self.entries

        skipped = 0
        for record in raw:
            try:
                self._entries.append(record_to_summary(record))
            except HistoryFormatError as e:
                skipped += 1
                logger.debug("Skipping history record: %s", e)

        if skipped:
            logger.warning("Skipped %d malformed record(s) in %s", skipped, p)
        logger.debug("Loaded %d run(s) from %s", len(self._entries), p)
        return self.entries

    def append(self, summary: RunSummary) -> None:
        self._entries.append(summary)

    def trim(self, capacity: int) -> None:
        """Keep only the most recent ``capacity`` runs."""
        if capacity <= 0:
            self._entries = []
        elif len(self._entries) > capacity:
            del self._entries[: len(self._entries) - capacity]

    def save(self, path: Path | str, capacity: int = DEFAULT_CAPACITY) -> bool:
        """Trim to ``capacity`` and overwrite ``path``. Returns False on I/O failure."""
        self.trim(capacity)
        p = Path(path)
        records = [summary_to_record(s) for s in self._entries]

        tmp_path: Optional[str] = None
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            tmp_fd, tmp_path = tempfile.mkstemp(dir=p.parent, suffix=".json.tmp")
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, p)
        except OSError as e:
            logger.error("Could not save build history to %s: %s", p, e)
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            return False

        logger.debug("Saved %d run(s) to %s", len(records), p)
        return True
