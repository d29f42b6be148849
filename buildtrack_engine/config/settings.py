"""Tracker settings: thresholds, sampling, regression, history and toggles."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# Stage Timing
# =============================================================================

class StageThresholds(BaseModel):
    """Per-stage speed classification thresholds in milliseconds."""
    fast_millis: int = Field(default=1000, ge=0, description="Stages at or below this are fast")
    warn_millis: int = Field(default=5000, ge=0, description="Stages above this are slow")

    @model_validator(mode="after")
    def _check_order(self) -> "StageThresholds":
        if self.warn_millis < self.fast_millis:
            raise ValueError(
                f"warn_millis ({self.warn_millis}) must be >= fast_millis ({self.fast_millis})"
            )
        return self


# =============================================================================
# Resource Sampling
# =============================================================================

class SamplingSettings(BaseModel):
    """Background memory/CPU sampling configuration."""
    enabled: bool = Field(default=True, description="Enable resource sampling")
    interval_millis: int = Field(default=1000, ge=10, le=60_000, description="Sampling interval in milliseconds")


class ResourceAlertThresholds(BaseModel):
    """Resource warning thresholds, independent of efficiency scoring."""
    peak_memory_bytes: int = Field(default=2 * 1024 ** 3, ge=0, description="Warn above this peak memory")
    avg_cpu_fraction: float = Field(default=0.8, ge=0.0, le=1.0, description="Warn above this average CPU")
    gc_millis: int = Field(default=5000, ge=0, description="Warn above this total GC time")


# =============================================================================
# History and Regression
# =============================================================================

class RegressionSettings(BaseModel):
    """Regression detection configuration."""
    threshold_factor: float = Field(default=1.5, gt=1.0, description="current/average ratio that counts as a regression")


class HistorySettings(BaseModel):
    """Persisted run history configuration."""
    path: Path = Field(default=Path("target/build-history.json"), description="History file location")
    capacity: int = Field(default=20, ge=1, le=10_000, description="Maximum number of runs retained")


class AnalyzerToggles(BaseModel):
    """Enable flags for each analyzer."""
    bottleneck: bool = True
    regression: bool = True
    efficiency: bool = True
    failure_analysis: bool = True
    resource_alerts: bool = True


# =============================================================================
# Logging and Reports
# =============================================================================

class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    log_dir: Path = Field(default=Path("logs"))
    json_file: str = Field(default="buildtrack.log")


class ReportSettings(BaseModel):
    output_dir: Optional[Path] = Field(default=None, description="Directory for the JSON report set")
    write_json: bool = Field(default=False, description="Write build-time-report.json after each run")


class TrackerConfig(BaseModel):
    """Top-level tracker config; unknown keys are kept for forward compatibility."""

    model_config = ConfigDict(extra="allow")

    thresholds: StageThresholds = Field(default_factory=StageThresholds)
    sampling: SamplingSettings = Field(default_factory=SamplingSettings)
    regression: RegressionSettings = Field(default_factory=RegressionSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    analyzers: AnalyzerToggles = Field(default_factory=AnalyzerToggles)
    alerts: ResourceAlertThresholds = Field(default_factory=ResourceAlertThresholds)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)

    def report_path(self) -> Optional[Path]:
        """Where the JSON report set goes, or None when export is off."""
        if not self.report.write_json:
            return None
        base = self.report.output_dir or self.history.path.parent
        return base / "build-time-report.json"
