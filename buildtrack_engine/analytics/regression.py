"""
Regression detection against run history.

Two independent signals are reported: a threshold verdict comparing the
current run to the historical average, and a trend over the last three
historical runs. They may disagree (a one-off regression inside an
improving trend) and both are kept.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ..models import RunSummary
from .data_models import RegressionReport, Trend

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_FACTOR = 1.5
MIN_HISTORY_FOR_COMPARISON = 2
TREND_WINDOW = 3


def prior_runs(current: RunSummary, history: Sequence[RunSummary]) -> list[RunSummary]:
    """History without the current run, matched by identity."""
    return [run for run in history if run is not current]


def classify_trend(totals: Sequence[int]) -> Trend:
    """Trend of the last three totals, oldest first."""
    if len(totals) < TREND_WINDOW:
        return Trend.INSUFFICIENT_DATA
    window = list(totals)[-TREND_WINDOW:]
    pairs = list(zip(window, window[1:]))
    if all(later > earlier for earlier, later in pairs):
        return Trend.DEGRADING
    if all(later < earlier for earlier, later in pairs):
        return Trend.IMPROVING
    if all(later == earlier for earlier, later in pairs):
        return Trend.STABLE
    return Trend.VARIABLE


class RegressionDetector:
    """Compares a run's total time against the average of earlier runs."""

    def detect(
        self,
        current: RunSummary,
        history: Sequence[RunSummary],
        threshold_factor: float = DEFAULT_THRESHOLD_FACTOR,
    ) -> RegressionReport:
        if threshold_factor <= 1.0:
            logger.warning(
                "Regression threshold %.3f must be > 1.0; using %.1f",
                threshold_factor,
                DEFAULT_THRESHOLD_FACTOR,
            )
            threshold_factor = DEFAULT_THRESHOLD_FACTOR

        prior = prior_runs(current, history)
        current_millis = current.total_millis

        if len(prior) < MIN_HISTORY_FOR_COMPARISON:
            return RegressionReport(
                factor=1.0,
                current_millis=current_millis,
                average_millis=float(current_millis),
                trend=Trend.INSUFFICIENT_DATA,
                samples_considered=len(prior),
            )

        average = sum(run.total_millis for run in prior) / len(prior)
        trend = classify_trend([run.total_millis for run in prior])

        if average <= 0:
            # All earlier runs recorded zero time; no meaningful ratio
            return RegressionReport(
                factor=1.0,
                current_millis=current_millis,
                average_millis=average,
                trend=trend,
                samples_considered=len(prior),
            )

        factor = current_millis / average
        is_regression = factor >= threshold_factor
        is_improvement = factor <= 1.0 / threshold_factor

        if is_regression:
            logger.info(
                "Performance regression: %.2fx slower than average of %d run(s)",
                factor,
                len(prior),
            )

        return RegressionReport(
            is_regression=is_regression,
            is_improvement=is_improvement,
            factor=factor,
            current_millis=current_millis,
            average_millis=average,
            trend=trend,
            samples_considered=len(prior),
        )
