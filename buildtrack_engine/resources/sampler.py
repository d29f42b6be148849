"""
Background memory/CPU sampler for one tracked run.

Features:
- Fixed-interval sampling on a daemon thread
- Process memory (RSS) and CPU utilisation normalised to 0.0-1.0
- Garbage collector activity (collections and time) since start
- Single failed readings are dropped, sampling carries on
"""

from __future__ import annotations

import gc
import logging
import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Optional, Tuple

import psutil

from ..exceptions import SamplingError
from .data_models import ResourceAggregate, ResourceSample

logger = logging.getLogger(__name__)


def _total_collections() -> int:
    return sum(stat.get("collections", 0) for stat in gc.get_stats())


class GCActivityTracker:
    """Counts collections and time spent in the garbage collector."""

    def __init__(self):
        self._baseline = 0
        self._elapsed = 0.0
        self._phase_started: Optional[float] = None
        self._active = False

    def start(self) -> None:
        if self._active:
            return
        self._baseline = _total_collections()
        self._elapsed = 0.0
        gc.callbacks.append(self._on_gc)
        self._active = True

    def _on_gc(self, phase: str, info: dict) -> None:
        if phase == "start":
            self._phase_started = time.perf_counter()
        elif phase == "stop" and self._phase_started is not None:
            self._elapsed += time.perf_counter() - self._phase_started
            self._phase_started = None

    def stop(self) -> Tuple[int, int]:
        """Detach and return (collections, millis) since start."""
        if not self._active:
            return 0, 0
        if self._on_gc in gc.callbacks:
            gc.callbacks.remove(self._on_gc)
        self._active = False
        count = max(0, _total_collections() - self._baseline)
        return count, int(self._elapsed * 1000)


class ResourceSampler:
    """
    Periodic resource sampler producing a ResourceAggregate on stop.

    Readers can be injected for tests; by default they read the current
    process through psutil.
    """

    def __init__(
        self,
        memory_reader: Optional[Callable[[], int]] = None,
        cpu_reader: Optional[Callable[[], float]] = None,
        history_size: int = 100,
    ):
        self._process = psutil.Process()
        self._cpu_count = psutil.cpu_count(logical=True) or 1
        self._memory_reader = memory_reader or self._read_process_memory
        self._cpu_reader = cpu_reader or self._read_process_cpu

        self.recent_samples: Deque[ResourceSample] = deque(maxlen=history_size)
        self.failed_samples = 0

        # Running totals so long runs do not keep every sample
        self._count = 0
        self._memory_sum = 0
        self._memory_peak = 0
        self._cpu_sum = 0.0
        self._cpu_peak = 0.0

        self._gc_tracker = GCActivityTracker()
        self._interval_seconds = 1.0
        self._stop_event = threading.Event()
        self._sampling_thread: Optional[threading.Thread] = None
        self._accepting = False
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def _read_process_memory(self) -> int:
        try:
            return int(self._process.memory_info().rss)
        except psutil.Error as e:
            raise SamplingError("Failed to read process memory", original_exception=e) from e

    def _read_process_cpu(self) -> float:
        try:
            percent = self._process.cpu_percent(interval=None)
        except psutil.Error as e:
            raise SamplingError("Failed to read process CPU", original_exception=e) from e
        return percent / (100.0 * self._cpu_count)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._sampling_thread is not None

    def start(self, interval_millis: int) -> None:
        """Start background sampling every ``interval_millis``."""
        with self._lock:
            if self._sampling_thread is not None:
                return
            self._interval_seconds = max(interval_millis, 1) / 1000.0
            self._accepting = True
            self._stop_event.clear()

        # Prime psutil so the first tick reports usage since now
        try:
            self._process.cpu_percent(interval=None)
        except psutil.Error:
            logger.debug("Could not prime CPU counter", exc_info=True)

        self._gc_tracker.start()
        thread = threading.Thread(
            target=self._sample_loop, daemon=True, name="ResourceSampler"
        )
        self._sampling_thread = thread
        thread.start()

    def stop(self) -> ResourceAggregate:
        """Stop sampling and return the aggregate of everything collected."""
        thread = self._sampling_thread
        if thread is not None:
            self._stop_event.set()
            # Waits for an in-flight tick to finish appending
            thread.join(timeout=self._interval_seconds + 2.0)
            if thread.is_alive():
                logger.warning("Resource sampler did not stop in time; ignoring late samples")
        with self._lock:
            self._accepting = False
            self._sampling_thread = None
        gc_count, gc_millis = self._gc_tracker.stop()
        return self.aggregate(gc_count=gc_count, gc_millis=gc_millis)

    def _sample_loop(self) -> None:
        """Background sampling loop."""
        while not self._stop_event.wait(self._interval_seconds):
            self.take_sample()

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def take_sample(self) -> Optional[ResourceSample]:
        """Read memory and CPU once and fold the result into the totals.

        Returns None when the reading failed or sampling has stopped.
        """
        try:
            memory = int(self._memory_reader())
            cpu = float(self._cpu_reader())
            if memory < 0 or math.isnan(cpu):
                raise SamplingError(f"Invalid reading (memory={memory}, cpu={cpu})")
        except Exception as e:
            self.failed_samples += 1
            logger.debug("Dropping resource sample: %s", e)
            return None

        sample = ResourceSample(
            timestamp=time.time(),
            heap_used_bytes=memory,
            cpu_fraction=min(1.0, max(0.0, cpu)),
        )

        with self._lock:
            if not self._accepting:
                return None
            self.recent_samples.append(sample)
            self._count += 1
            self._memory_sum += sample.heap_used_bytes
            self._memory_peak = max(self._memory_peak, sample.heap_used_bytes)
            self._cpu_sum += sample.cpu_fraction
            self._cpu_peak = max(self._cpu_peak, sample.cpu_fraction)
        return sample

    def aggregate(self, gc_count: int = 0, gc_millis: int = 0) -> ResourceAggregate:
        """Current aggregate; all zeros when no sample was ever taken."""
        with self._lock:
            if self._count == 0:
                return ResourceAggregate()
            return ResourceAggregate(
                avg_memory_bytes=self._memory_sum // self._count,
                peak_memory_bytes=self._memory_peak,
                avg_cpu_fraction=self._cpu_sum / self._count,
                peak_cpu_fraction=self._cpu_peak,
                gc_count=gc_count,
                gc_millis=gc_millis,
                sample_count=self._count,
            )
