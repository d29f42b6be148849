"""
Tests for StageTimer and stage speed classification.
"""

import threading

import pytest

from buildtrack_engine.timing import StageTimer, classify_stage


@pytest.fixture
def timer():
    return StageTimer()


class TestRecordStartEnd:
    """Start/end pairing."""

    def test_duration_is_end_minus_start(self, timer):
        """A matched start/end pair yields end - start."""
        assert timer.record_start("compile", 1_000) is True
        assert timer.record_end("compile", 4_200) == 3_200
        assert timer.durations() == {"compile": 3_200}

    def test_first_start_wins(self, timer):
        """A second start for a running stage is ignored."""
        timer.record_start("test", 100)
        assert timer.record_start("test", 500) is False
        timer.record_end("test", 1_100)
        assert timer.durations()["test"] == 1_000

    def test_end_without_start_is_dropped(self, timer):
        """An unmatched end never shows up in the durations."""
        assert timer.record_end("package", 900) is None
        assert "package" not in timer.durations()

    def test_second_end_is_dropped(self, timer):
        timer.record_start("validate", 0)
        timer.record_end("validate", 200)
        assert timer.record_end("validate", 900) is None
        assert timer.durations() == {"validate": 200}

    def test_restart_after_end_records_latest(self, timer):
        """A stage can run again after it ended; the last run is kept."""
        timer.record_start("test", 0)
        timer.record_end("test", 100)
        timer.record_start("test", 1_000)
        timer.record_end("test", 1_250)
        assert timer.durations() == {"test": 250}

    def test_negative_duration_clamped(self, timer):
        timer.record_start("compile", 5_000)
        assert timer.record_end("compile", 4_000) == 0

    @pytest.mark.parametrize("name", ["total", ""])
    def test_reserved_and_empty_names_ignored(self, timer, name):
        assert timer.record_start(name, 0) is False
        assert timer.record_end(name, 10) is None
        assert timer.durations() == {}

    def test_running_stages(self, timer):
        timer.record_start("compile", 0)
        timer.record_start("test", 0)
        timer.record_end("compile", 10)
        assert timer.is_running("test")
        assert not timer.is_running("compile")
        assert timer.running_stages() == ["test"]


class TestDurations:
    """Durations snapshot."""

    def test_total_added_under_reserved_key(self, timer):
        timer.record_start("compile", 0)
        timer.record_end("compile", 300)
        assert timer.durations(total_millis=500) == {"compile": 300, "total": 500}

    def test_completion_order_preserved(self, timer):
        timer.record_start("a", 0)
        timer.record_start("b", 0)
        timer.record_end("b", 10)
        timer.record_end("a", 20)
        assert list(timer.durations()) == ["b", "a"]

    def test_snapshot_is_a_copy(self, timer):
        timer.record_start("a", 0)
        timer.record_end("a", 5)
        snapshot = timer.durations()
        snapshot["a"] = 999
        assert timer.durations()["a"] == 5


class TestConcurrentStages:
    """Distinct stages reported from several threads."""

    def test_concurrent_distinct_stages(self, timer):
        """Every stage recorded from its own thread is kept exactly once."""
        names = [f"module-{i}" for i in range(50)]
        barrier = threading.Barrier(len(names))

        def worker(name, offset):
            barrier.wait()
            timer.record_start(name, offset)
            timer.record_end(name, offset + 10 + offset % 7)

        threads = [
            threading.Thread(target=worker, args=(name, i)) for i, name in enumerate(names)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        durations = timer.durations()
        assert set(durations) == set(names)
        for i, name in enumerate(names):
            assert durations[name] == 10 + i % 7

    def test_concurrent_starts_same_stage_deduplicated(self, timer):
        """Only one of many racing starts arms the stage."""
        barrier = threading.Barrier(20)
        results = []
        lock = threading.Lock()

        def worker(ts):
            barrier.wait()
            armed = timer.record_start("compile", ts)
            with lock:
                results.append(armed)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1


class TestClassifyStage:
    """Speed classes."""

    @pytest.mark.parametrize(
        "millis,expected",
        [(0, "fast"), (1000, "fast"), (1001, "warn"), (5000, "warn"), (5001, "slow")],
    )
    def test_boundaries(self, millis, expected):
        assert classify_stage(millis, 1000, 5000) == expected
