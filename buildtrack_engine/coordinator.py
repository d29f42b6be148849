"""
Run Coordinator: drives one tracked run from start to report set.

The host reports lifecycle events (run start, stage start/end/failure,
run end) as plain names and epoch-millisecond timestamps. On run end the
coordinator builds the RunSummary, runs the enabled analyzers against the
persisted history, appends the run and saves the history.

Nothing raised inside the engine is allowed to reach the host: analyzer
errors are logged and leave that report empty, and history or report
write failures are logged and skipped.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, List, Optional

from .analytics import (
    BottleneckAnalyzer,
    EfficiencyScorer,
    FailureAnalyzer,
    RegressionDetector,
    StageFailure,
)
from .config.settings import TrackerConfig
from .history import HistoryStore
from .logger import ProductionLogger, get_logger
from .models import RunSummary
from .reports import ReportSet, write_report_json
from .resources import ResourceAggregate, ResourceSampler, evaluate_resource_alerts
from .timing import StageTimer, classify_stage


def epoch_millis() -> int:
    return int(time.time() * 1000)


class StageEventListener(ABC):
    """The narrow set of host callbacks the engine depends on."""

    @abstractmethod
    def on_stage_start(self, name: str, timestamp: Optional[int] = None) -> None:
        pass

    @abstractmethod
    def on_stage_end(self, name: str, timestamp: Optional[int] = None) -> None:
        pass

    @abstractmethod
    def on_run_end(self, timestamp: Optional[int] = None) -> Any:
        pass


@dataclass
class RunState:
    """State owned by exactly one run; dropped once the summary is built."""

    started_at: int
    run_id: str = ""
    timer: StageTimer = field(default_factory=StageTimer)
    sampler: Optional[ResourceSampler] = None
    failures: List[StageFailure] = field(default_factory=list)


class RunCoordinator(StageEventListener):
    """
    Tracks runs and produces a ReportSet for each.

    Args:
        config: Tracker settings; defaults when omitted
        history_store: Store to load/append runs; a fresh one when omitted
        sampler_factory: Builds the resource sampler for each run
        clock: Returns the current time in epoch milliseconds
        logger: Structured logger; built from ``config.logging`` when omitted
    """

    def __init__(
        self,
        config: Optional[TrackerConfig] = None,
        *,
        history_store: Optional[HistoryStore] = None,
        sampler_factory: Optional[Callable[[], ResourceSampler]] = None,
        clock: Optional[Callable[[], int]] = None,
        logger: Optional[ProductionLogger] = None,
    ):
        self.config = config or TrackerConfig()
        self.history = history_store if history_store is not None else HistoryStore()
        self.sampler_factory = sampler_factory or ResourceSampler
        self.clock = clock or epoch_millis
        self._owns_logger = logger is None
        self.logger = logger or get_logger(
            log_level=self.config.logging.level,
            log_dir=self.config.logging.log_dir,
            json_file=self.config.logging.json_file,
        )

        self.bottleneck_analyzer = BottleneckAnalyzer()
        self.regression_detector = RegressionDetector()
        self.efficiency_scorer = EfficiencyScorer()
        self.failure_analyzer = FailureAnalyzer()

        self.last_reports: Optional[ReportSet] = None
        self._state: Optional[RunState] = None
        self._lock = threading.RLock()
        self._history_loaded = False

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def load_history(self) -> List[RunSummary]:
        entries = self.history.load(self.config.history.path)
        self._history_loaded = True
        self.logger.debug(
            "Loaded build history",
            path=str(self.config.history.path),
            runs=len(entries),
        )
        return entries

    # ------------------------------------------------------------------
    # Host callbacks
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._state is not None

    def on_run_start(self, timestamp: Optional[int] = None) -> None:
        with self._lock:
            if self._state is not None:
                self.logger.warning("Run already in progress; ignoring run start")
                return
            self._state = self._begin_run(timestamp)

    def _begin_run(self, timestamp: Optional[int]) -> RunState:
        started_at = self._now(timestamp)
        run_id = self.logger.start_run(
            started_at=started_at, history_path=str(self.config.history.path)
        )
        self.load_history()
        state = RunState(started_at=started_at, run_id=run_id)

        if self.config.sampling.enabled:
            try:
                sampler = self.sampler_factory()
                sampler.start(self.config.sampling.interval_millis)
                state.sampler = sampler
            except Exception:
                self.logger.exception("Resource sampling unavailable for this run")

        self.logger.info(
            "Build tracking started",
            sampling=state.sampler is not None,
            history_runs=len(self.history),
        )
        return state

    def on_stage_start(self, name: str, timestamp: Optional[int] = None) -> None:
        state = self._ensure_run(timestamp)
        if state.timer.record_start(name, self._now(timestamp)):
            self.logger.debug("Stage started", stage=name)

    def on_stage_end(self, name: str, timestamp: Optional[int] = None) -> Optional[int]:
        state = self._state
        if state is None:
            return None
        duration = state.timer.record_end(name, self._now(timestamp))
        if duration is None:
            return None

        thresholds = self.config.thresholds
        speed = classify_stage(duration, thresholds.fast_millis, thresholds.warn_millis)
        self.logger.info(
            f"Stage {name} completed in {duration} ms ({speed})",
            stage=name,
            duration_millis=duration,
            speed=speed,
        )
        return duration

    def on_stage_failure(
        self, name: str, error: BaseException, timestamp: Optional[int] = None
    ) -> Optional[StageFailure]:
        """Time the failed stage and record its failure analysis."""
        state = self._ensure_run(timestamp)
        self.on_stage_end(name, timestamp)

        self.logger.error(
            f"Stage {name} failed: {error}",
            stage=name,
            error_type=type(error).__name__,
        )
        if not self.config.analyzers.failure_analysis:
            return None

        failure = self._guarded(
            "failure", lambda: self.failure_analyzer.analyze(name, error)
        )
        if failure is not None:
            state.failures.append(failure)
        return failure

    def on_run_end(self, timestamp: Optional[int] = None) -> ReportSet:
        with self._lock:
            state = self._state
            if state is None:
                self.logger.warning("Run end without run start; recording an empty run")
                state = self._begin_run(timestamp)
            self._state = None

        ended_at = self._now(timestamp)
        aggregate = self._stop_sampler(state)

        unfinished = state.timer.running_stages()
        if unfinished:
            self.logger.debug("Stages never ended", stages=unfinished)

        total = max(0, ended_at - state.started_at)
        summary = RunSummary(
            timestamp=datetime.fromtimestamp(ended_at / 1000.0, tz=timezone.utc),
            total_millis=total,
            stage_durations=state.timer.durations(total_millis=total),
            resource_aggregate=aggregate,
        )
        failures = tuple(state.failures)

        reports = self._analyze(summary, failures)

        self.history.append(summary)
        self.history.save(self.config.history.path, self.config.history.capacity)
        self._export(reports)
        self._log_verdicts(reports)

        self.last_reports = reports
        return reports

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    @contextmanager
    def track_stage(self, name: str) -> Iterator[None]:
        """Time the enclosed block as a stage; failures are recorded and re-raised."""
        self.on_stage_start(name)
        try:
            yield
        except Exception as e:
            self.on_stage_failure(name, e)
            raise
        else:
            self.on_stage_end(name)

    def analyze_summary(self, summary: RunSummary) -> ReportSet:
        """Run the enabled analyzers for an existing summary without a live run."""
        if not self._history_loaded:
            self.load_history()
        return self._analyze(summary, ())

    def close(self) -> None:
        if self._owns_logger:
            self.logger.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now(self, timestamp: Optional[int]) -> int:
        return int(timestamp) if timestamp is not None else self.clock()

    def _ensure_run(self, timestamp: Optional[int]) -> RunState:
        state = self._state
        if state is not None:
            return state
        with self._lock:
            if self._state is None:
                self.logger.debug("Stage event before run start; starting run implicitly")
                self._state = self._begin_run(timestamp)
            return self._state

    def _stop_sampler(self, state: RunState) -> ResourceAggregate:
        if state.sampler is None:
            return ResourceAggregate()
        try:
            return state.sampler.stop()
        except Exception:
            self.logger.exception("Failed to stop resource sampler")
            return ResourceAggregate()

    def _guarded(self, name: str, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except Exception:
            self.logger.exception(f"{name} analysis failed", analyzer=name)
            return None

    def _analyze(self, summary: RunSummary, failures) -> ReportSet:
        toggles = self.config.analyzers
        history = self.history.entries

        bottleneck = regression = efficiency = None
        if toggles.bottleneck:
            bottleneck = self._guarded(
                "bottleneck",
                lambda: self.bottleneck_analyzer.analyze(summary.stage_durations),
            )
        if toggles.regression:
            regression = self._guarded(
                "regression",
                lambda: self.regression_detector.detect(
                    summary, history, self.config.regression.threshold_factor
                ),
            )
        if toggles.efficiency:
            efficiency = self._guarded(
                "efficiency", lambda: self.efficiency_scorer.score(summary, history)
            )
        alerts = []
        if toggles.resource_alerts:
            alerts = self._guarded(
                "resource alert",
                lambda: evaluate_resource_alerts(
                    summary.resource_aggregate, self.config.alerts
                ),
            ) or []

        return ReportSet(
            run_summary=summary,
            bottleneck=bottleneck,
            regression=regression,
            efficiency=efficiency,
            resource_alerts=tuple(alerts),
            failures=tuple(failures),
        )

    def _export(self, reports: ReportSet) -> None:
        path = self.config.report_path()
        if path is None:
            return
        try:
            write_report_json(reports, path)
        except OSError as e:
            self.logger.error(f"Could not write report set: {e}", path=str(path))

    def _log_verdicts(self, reports: ReportSet) -> None:
        summary = reports.run_summary
        fields = {"total_millis": summary.total_millis}
        if reports.bottleneck is not None and reports.bottleneck.has_signal:
            fields["primary_stage"] = reports.bottleneck.primary_stage
            fields["primary_percentage"] = round(reports.bottleneck.primary_percentage, 1)
        if reports.regression is not None:
            fields["regression_factor"] = round(reports.regression.factor, 3)
            fields["trend"] = reports.regression.trend.value
        if reports.efficiency is not None:
            fields["efficiency_score"] = reports.efficiency.total_score
            fields["grade"] = reports.efficiency.letter_grade
        self.logger.info("Build tracking finished", **fields)

        if reports.regression is not None and reports.regression.is_regression:
            self.logger.warning(
                f"Performance regression: {reports.regression.factor:.2f}x the historical average"
            )
        for alert in reports.resource_alerts:
            self.logger.warning(alert.message, alert=alert.kind)


@contextmanager
def tracked_run(
    config: Optional[TrackerConfig] = None, **kwargs: Any
) -> Iterator[RunCoordinator]:
    """
    Track everything inside the block as one run.

    The report set is available as ``coordinator.last_reports`` after exit,
    including when the block raised.
    """
    coordinator = RunCoordinator(config, **kwargs)
    coordinator.on_run_start()
    try:
        yield coordinator
    finally:
        coordinator.on_run_end()
        coordinator.close()
