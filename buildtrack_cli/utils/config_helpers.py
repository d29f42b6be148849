"""
Configuration helper utilities for the BuildTrack CLI

Functions to find and load tracker configuration and stage timing files.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from buildtrack_engine.config import TrackerConfig, load_tracker_config
from buildtrack_engine.models import TOTAL_STAGE, RunSummary


def find_default_config() -> Optional[Path]:
    """Find the default tracker configuration file, if any."""
    default_paths = [
        Path("config/tracker_config.yaml"),
        Path("tracker_config.yaml"),
        Path("buildtrack.yaml"),
    ]

    for config_path in default_paths:
        if config_path.exists():
            return config_path
    return None


def resolve_config(
    config: Optional[str] = None, history_file: Optional[str] = None
) -> TrackerConfig:
    """
    Load the tracker configuration used by a command.

    An explicit ``config`` must exist; otherwise the first default location
    found is used, falling back to built-in defaults. ``history_file``
    overrides ``history.path``.
    """
    config_path = Path(config) if config else find_default_config()
    cfg = load_tracker_config(config_path) if config_path else TrackerConfig()

    if history_file:
        cfg.history = cfg.history.model_copy(update={"path": Path(history_file)})
    return cfg


def read_stage_durations(path: Path) -> Dict[str, int]:
    """
    Read a ``{stage: millis}`` JSON object.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the content is not an object of non-negative integers
    """
    if not path.exists():
        raise FileNotFoundError(f"Stage timing file not found: {path}")

    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)

    if not isinstance(data, dict):
        raise ValueError("Stage timing file must contain a JSON object")

    durations: Dict[str, int] = {}
    for name, millis in data.items():
        if isinstance(millis, bool) or not isinstance(millis, (int, float)) or millis < 0:
            raise ValueError(f"Invalid duration for stage '{name}': {millis!r}")
        durations[str(name)] = int(millis)
    return durations


def summary_from_durations(durations: Dict[str, int]) -> RunSummary:
    """Build a RunSummary; the total is the ``total`` entry or the stage sum."""
    stages = {k: v for k, v in durations.items() if k != TOTAL_STAGE}
    total = durations.get(TOTAL_STAGE, sum(stages.values()))
    return RunSummary(
        timestamp=datetime.now(timezone.utc),
        total_millis=total,
        stage_durations={**stages, TOTAL_STAGE: total},
    )
