"""Tracker configuration models and loader."""

from .settings import (
    AnalyzerToggles,
    HistorySettings,
    LoggingSettings,
    RegressionSettings,
    ReportSettings,
    ResourceAlertThresholds,
    SamplingSettings,
    StageThresholds,
    TrackerConfig,
)
from .loader import load_tracker_config

__all__ = [
    "AnalyzerToggles",
    "HistorySettings",
    "LoggingSettings",
    "RegressionSettings",
    "ReportSettings",
    "ResourceAlertThresholds",
    "SamplingSettings",
    "StageThresholds",
    "TrackerConfig",
    "load_tracker_config",
]
