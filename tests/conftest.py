"""
Pytest Configuration for BuildTrack Testing
===========================================

Shared fixtures for building run summaries and quiet coordinators.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from buildtrack_engine.config import TrackerConfig
from buildtrack_engine.models import RunSummary
from buildtrack_engine.resources import ResourceAggregate

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def pytest_collection_modifyitems(config, items):
    """Automatically add markers based on test location."""
    for item in items:
        if "/unit/" in item.nodeid:
            item.add_marker(pytest.mark.unit)
            item.add_marker(pytest.mark.fast)  # Unit tests are fast by default
        elif "/integration/" in item.nodeid:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if "/cli/" in item.nodeid:
            item.add_marker(pytest.mark.cli)
        if "threading" in item.nodeid.lower() or "concurrent" in item.nodeid.lower():
            item.add_marker(pytest.mark.threading)
        if "config" in item.nodeid.lower():
            item.add_marker(pytest.mark.config)


def make_run(total_millis, stages=None, aggregate=None, offset_minutes=0):
    """Build a RunSummary with a deterministic timestamp."""
    return RunSummary(
        timestamp=BASE_TIME + timedelta(minutes=offset_minutes),
        total_millis=total_millis,
        stage_durations=stages or {},
        resource_aggregate=aggregate or ResourceAggregate(),
    )


def make_history(*totals):
    return [make_run(total, offset_minutes=i) for i, total in enumerate(totals)]


@pytest.fixture
def quiet_logger():
    """Stand-in for ProductionLogger that records calls."""
    return MagicMock()


@pytest.fixture
def tracker_config(tmp_path: Path) -> TrackerConfig:
    """Config writing history and logs under tmp_path, sampling off."""
    return TrackerConfig(
        sampling={"enabled": False},
        history={"path": tmp_path / "target" / "build-history.json", "capacity": 5},
        logging={"log_dir": tmp_path / "logs"},
    )


@pytest.fixture
def run_factory():
    return make_run


@pytest.fixture
def history_factory():
    return make_history
