"""
BuildTrack analytics engine.

Times the stages of a build or pipeline run, samples process resources in
the background, and turns each run into bottleneck, regression and
efficiency reports compared against a persisted run history.

Typical use::

    from buildtrack_engine import tracked_run

    with tracked_run() as run:
        with run.track_stage("compile"):
            compile_sources()
        with run.track_stage("test"):
            run_tests()

    print(run.last_reports.bottleneck.primary_stage)
"""

from _version import __version__

from .analytics import (
    BottleneckAnalyzer,
    BottleneckReport,
    EfficiencyReport,
    EfficiencyScorer,
    FailureAnalyzer,
    RankedStage,
    RegressionDetector,
    RegressionReport,
    StageFailure,
    Trend,
)
from .config import TrackerConfig, load_tracker_config
from .coordinator import RunCoordinator, RunState, StageEventListener, tracked_run
from .exceptions import (
    BuildTrackError,
    ConfigurationError,
    ErrorCategory,
    ErrorSeverity,
    HistoryFormatError,
    SamplingError,
)
from .history import HistoryStore
from .logger import ProductionLogger, get_logger
from .models import TOTAL_STAGE, RunSummary
from .reports import ReportSet, write_report_json
from .resources import ResourceAggregate, ResourceAlert, ResourceSampler
from .timing import StageTimer, classify_stage

__all__ = [
    "__version__",
    # Coordinator
    "RunCoordinator",
    "RunState",
    "StageEventListener",
    "tracked_run",
    # Engine components
    "StageTimer",
    "classify_stage",
    "ResourceSampler",
    "HistoryStore",
    "BottleneckAnalyzer",
    "RegressionDetector",
    "EfficiencyScorer",
    "FailureAnalyzer",
    # Data
    "RunSummary",
    "TOTAL_STAGE",
    "ResourceAggregate",
    "ResourceAlert",
    "RankedStage",
    "BottleneckReport",
    "RegressionReport",
    "EfficiencyReport",
    "StageFailure",
    "Trend",
    "ReportSet",
    "write_report_json",
    # Config, logging, errors
    "TrackerConfig",
    "load_tracker_config",
    "ProductionLogger",
    "get_logger",
    "BuildTrackError",
    "ConfigurationError",
    "ErrorCategory",
    "ErrorSeverity",
    "HistoryFormatError",
    "SamplingError",
]
