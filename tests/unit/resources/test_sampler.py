"""
Tests for the ResourceSampler class.

Readers are injected so no real process measurements are needed except in
the lifecycle test that exercises the background thread.
"""

import time
from unittest.mock import MagicMock, patch

import psutil
import pytest

from buildtrack_engine.exceptions import SamplingError
from buildtrack_engine.resources import GCActivityTracker, ResourceAggregate, ResourceSampler


def _sequence_reader(values):
    it = iter(values)
    return lambda: next(it)


@pytest.fixture
def started_sampler():
    """Sampler accepting samples, with fixed readings and no thread ticks."""
    sampler = ResourceSampler(
        memory_reader=_sequence_reader([100, 300, 200]),
        cpu_reader=_sequence_reader([0.2, 0.6, 0.4]),
    )
    # Long interval so only manual take_sample() calls contribute
    sampler.start(60_000)
    yield sampler
    sampler.stop()


class TestAggregation:
    """Running totals and the aggregate."""

    def test_average_and_peak(self, started_sampler):
        for _ in range(3):
            started_sampler.take_sample()

        aggregate = started_sampler.aggregate()
        assert aggregate.sample_count == 3
        assert aggregate.avg_memory_bytes == 200
        assert aggregate.peak_memory_bytes == 300
        assert aggregate.avg_cpu_fraction == pytest.approx(0.4)
        assert aggregate.peak_cpu_fraction == pytest.approx(0.6)

    def test_no_samples_is_all_zero(self):
        sampler = ResourceSampler(memory_reader=lambda: 1, cpu_reader=lambda: 0.5)
        aggregate = sampler.aggregate()
        assert aggregate == ResourceAggregate()
        assert aggregate.is_empty

    def test_sample_ignored_before_start(self):
        sampler = ResourceSampler(memory_reader=lambda: 1, cpu_reader=lambda: 0.5)
        assert sampler.take_sample() is None
        assert sampler.aggregate().sample_count == 0

    def test_cpu_fraction_clipped(self):
        sampler = ResourceSampler(memory_reader=lambda: 10, cpu_reader=lambda: 1.7)
        sampler.start(60_000)
        try:
            sample = sampler.take_sample()
        finally:
            sampler.stop()
        assert sample.cpu_fraction == 1.0


class TestFailedReadings:
    """Single failed readings are dropped, not raised."""

    def test_reader_exception_skips_sample(self):
        calls = {"n": 0}

        def flaky_memory():
            calls["n"] += 1
            if calls["n"] == 2:
                raise SamplingError("transient")
            return 500

        sampler = ResourceSampler(memory_reader=flaky_memory, cpu_reader=lambda: 0.5)
        sampler.start(60_000)
        try:
            results = [sampler.take_sample() for _ in range(3)]
        finally:
            aggregate = sampler.stop()

        assert results[1] is None
        assert sampler.failed_samples == 1
        assert aggregate.sample_count == 2

    def test_negative_memory_rejected(self):
        sampler = ResourceSampler(memory_reader=lambda: -1, cpu_reader=lambda: 0.5)
        sampler.start(60_000)
        try:
            assert sampler.take_sample() is None
        finally:
            sampler.stop()
        assert sampler.failed_samples == 1

    def test_psutil_error_wrapped(self):
        sampler = ResourceSampler()
        with patch("psutil.Process.memory_info", side_effect=psutil.AccessDenied(pid=1)):
            with pytest.raises(SamplingError):
                sampler._read_process_memory()


class TestLifecycle:
    """Background thread start/stop."""

    def test_stop_without_start_returns_empty(self):
        sampler = ResourceSampler(memory_reader=lambda: 1, cpu_reader=lambda: 0.1)
        assert sampler.stop().is_empty

    def test_background_thread_collects_samples(self):
        sampler = ResourceSampler(memory_reader=lambda: 1024, cpu_reader=lambda: 0.5)
        sampler.start(10)
        assert sampler.is_running
        time.sleep(0.2)
        aggregate = sampler.stop()

        assert not sampler.is_running
        assert aggregate.sample_count > 0
        assert aggregate.peak_memory_bytes == 1024

    def test_no_samples_after_stop(self):
        reader = MagicMock(return_value=1)
        sampler = ResourceSampler(memory_reader=reader, cpu_reader=lambda: 0.1)
        sampler.start(10)
        time.sleep(0.05)
        aggregate = sampler.stop()
        count = sampler.aggregate().sample_count
        time.sleep(0.05)
        assert sampler.take_sample() is None
        assert sampler.aggregate().sample_count == count == aggregate.sample_count

    def test_short_run_has_no_samples(self):
        """The first reading happens one interval after start."""
        sampler = ResourceSampler(memory_reader=lambda: 1, cpu_reader=lambda: 0.1)
        sampler.start(60_000)
        assert sampler.stop().is_empty


class TestGCActivityTracker:
    """Garbage collector counters."""

    def test_counts_collections(self):
        import gc

        tracker = GCActivityTracker()
        tracker.start()
        gc.collect()
        count, millis = tracker.stop()
        assert count >= 1
        assert millis >= 0

    def test_stop_without_start(self):
        assert GCActivityTracker().stop() == (0, 0)
