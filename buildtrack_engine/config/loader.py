"""Configuration loading for the tracker."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from .settings import TrackerConfig


def _lower_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize dictionary keys to lowercase."""
    return {str(k).lower(): v for k, v in d.items()}


def _apply_env_overrides(cfg: Dict[str, Any], env: Dict[str, str], prefix: str) -> None:
    """Apply simple env overrides using DOUBLE-UNDERSCORE path syntax.

    Example: BUILDTRACK_HISTORY__CAPACITY=50 overrides history.capacity
    """
    plen = len(prefix)
    for key, value in env.items():
        if not key.startswith(prefix):
            continue
        path = key[plen:].lower().split("__")
        cur: Any = cfg
        for part in path[:-1]:
            if part not in cur or not isinstance(cur[part], dict):
                cur[part] = {}
            cur = cur[part]
        leaf = path[-1]
        if value.lower() in {"true", "false"}:
            cur[leaf] = value.lower() == "true"
        else:
            try:
                if "." in value:
                    cur[leaf] = float(value)
                else:
                    cur[leaf] = int(value)
            except ValueError:
                cur[leaf] = value


def load_tracker_config(
    path: Path | str = Path("config/tracker_config.yaml"),
    *,
    env_overrides: bool = True,
    env: Optional[Dict[str, str]] = None,
    env_prefix: str = "BUILDTRACK_",
) -> TrackerConfig:
    """Load YAML config and return a typed `TrackerConfig`.

    - Allows extra keys for forward compatibility
    - Optionally applies environment variable overrides
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")

    try:
        with open(p, "r") as fh:
            raw = yaml.safe_load(fh) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            "Config file is not valid YAML", config_path=str(p), original_exception=e
        ) from e

    if not isinstance(raw, dict):
        raise ConfigurationError("Config root must be a mapping", config_path=str(p))

    data = _lower_keys(raw)

    if env_overrides:
        _apply_env_overrides(data, env if env is not None else dict(os.environ), env_prefix)

    try:
        return TrackerConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid tracker configuration: {e}", config_path=str(p), original_exception=e
        ) from e
