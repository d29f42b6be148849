"""
Build efficiency scoring.

The score is the sum of four independently bounded sub-scores:

==============  ======  ==================================================
Sub-score       Range   Basis
==============  ======  ==================================================
Time            10-30   Absolute duration, or ratio to historical average
Memory           8-25   Peak memory; smaller is better
CPU             10-25   Average utilisation; higher is better (parallelism)
Consistency      8-20   Coefficient of variation of recent run times
==============  ======  ==================================================

Every sub-score is a step function over fixed bands, so it is monotonic and
never reaches zero. Low CPU utilisation is penalised because it usually
means the build is waiting on I/O rather than working.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from ..models import RunSummary
from ..resources.data_models import ResourceAggregate
from .data_models import EfficiencyReport
from .regression import prior_runs
from .rules import Rule, evaluate_rules

logger = logging.getLogger(__name__)

_MB = 1024 * 1024

TIME_MAX = 30.0
MEMORY_MAX = 25.0
CPU_MAX = 25.0
CONSISTENCY_MAX = 20.0

# (upper bound exclusive, score); last entry is the floor
ABSOLUTE_TIME_BANDS: Tuple[Tuple[float, float], ...] = (
    (30_000, 30.0),
    (60_000, 25.0),
    (180_000, 20.0),
    (300_000, 15.0),
    (math.inf, 10.0),
)

# (ratio upper bound inclusive, score)
RELATIVE_TIME_BANDS: Tuple[Tuple[float, float], ...] = (
    (0.8, 30.0),
    (0.9, 28.0),
    (1.1, 25.0),
    (1.3, 20.0),
    (1.5, 15.0),
    (math.inf, 10.0),
)

MEMORY_BANDS: Tuple[Tuple[float, float], ...] = (
    (256 * _MB, 25.0),
    (512 * _MB, 22.0),
    (1024 * _MB, 20.0),
    (2048 * _MB, 17.0),
    (4096 * _MB, 12.0),
    (math.inf, 8.0),
)

# (utilisation lower bound exclusive, score), highest first
CPU_BANDS: Tuple[Tuple[float, float], ...] = (
    (0.8, 25.0),
    (0.6, 22.0),
    (0.4, 18.0),
    (0.2, 15.0),
    (-math.inf, 10.0),
)

CONSISTENCY_BANDS: Tuple[Tuple[float, float], ...] = (
    (0.1, 20.0),
    (0.2, 18.0),
    (0.3, 15.0),
    (0.5, 12.0),
    (math.inf, 8.0),
)

DEFAULT_CONSISTENCY_SCORE = 15.0
NO_DATA_MEMORY_SCORE = 20.0
NO_DATA_CPU_SCORE = 18.0
MIN_HISTORY_FOR_CONSISTENCY = 3
CONSISTENCY_WINDOW = 5

GRADE_BANDS: Tuple[Tuple[float, str], ...] = (
    (90, "A+"),
    (85, "A"),
    (80, "A-"),
    (75, "B+"),
    (70, "B"),
    (65, "B-"),
    (60, "C+"),
    (55, "C"),
    (50, "C-"),
    (45, "D+"),
    (40, "D"),
)

DESCRIPTION_BANDS: Tuple[Tuple[float, str], ...] = (
    (85, "Excellent - Highly optimized build"),
    (70, "Good - Well-performing build"),
    (55, "Average - Room for improvement"),
    (40, "Below Average - Needs optimization"),
)

POSITIVE_SUGGESTION = "Build efficiency is good - maintain current practices"

SUGGESTION_RULES: Tuple[Rule["EfficiencyReport"], ...] = (
    Rule(
        "time",
        lambda r: r.time_score < 20,
        "Optimize build time by enabling parallel execution or incremental builds",
    ),
    Rule(
        "memory",
        lambda r: r.memory_score < 15,
        "Reduce memory usage by tuning heap settings or trimming dependencies",
    ),
    Rule(
        "cpu",
        lambda r: r.cpu_score < 15,
        "Improve CPU utilization by enabling parallel builds or reducing I/O bottlenecks",
    ),
    Rule(
        "consistency",
        lambda r: r.consistency_score < 12,
        "Improve build consistency by stabilizing test environments and dependencies",
    ),
)


def _below_band(value: float, bands: Sequence[Tuple[float, float]]) -> float:
    for upper, score in bands:
        if value < upper:
            return score
    return bands[-1][1]


def letter_grade(score: float) -> str:
    for floor, grade in GRADE_BANDS:
        if score >= floor:
            return grade
    return "F"


def score_description(score: float) -> str:
    for floor, description in DESCRIPTION_BANDS:
        if score >= floor:
            return description
    return "Poor - Significant optimization required"


def coefficient_of_variation(values: Sequence[float]) -> Optional[float]:
    """Population standard deviation divided by the mean; None if undefined."""
    if not values:
        return None
    mean = sum(values) / len(values)
    if mean <= 0:
        return None
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance) / mean


def time_score(current: RunSummary, prior: Sequence[RunSummary]) -> float:
    """0-30: absolute bands without history, ratio bands with it."""
    if prior:
        average = sum(run.total_millis for run in prior) / len(prior)
        if average > 0:
            ratio = current.total_millis / average
            for upper, score in RELATIVE_TIME_BANDS:
                if ratio <= upper:
                    return score
    return _below_band(current.total_millis, ABSOLUTE_TIME_BANDS)


def memory_score(aggregate: ResourceAggregate) -> float:
    if aggregate.is_empty:
        return NO_DATA_MEMORY_SCORE
    return _below_band(aggregate.peak_memory_bytes, MEMORY_BANDS)


def cpu_score(aggregate: ResourceAggregate) -> float:
    if aggregate.is_empty:
        return NO_DATA_CPU_SCORE
    for lower, score in CPU_BANDS:
        if aggregate.avg_cpu_fraction > lower:
            return score
    return CPU_BANDS[-1][1]


def consistency_score(prior: Sequence[RunSummary]) -> float:
    if len(prior) < MIN_HISTORY_FOR_CONSISTENCY:
        return DEFAULT_CONSISTENCY_SCORE
    recent = [float(run.total_millis) for run in prior[-CONSISTENCY_WINDOW:]]
    cv = coefficient_of_variation(recent)
    if cv is None:
        return DEFAULT_CONSISTENCY_SCORE
    return _below_band(cv, CONSISTENCY_BANDS)


class EfficiencyScorer:
    """Scores a run against its history."""

    def __init__(self, suggestion_rules: Optional[Sequence[Rule[EfficiencyReport]]] = None):
        self.suggestion_rules = (
            tuple(suggestion_rules) if suggestion_rules is not None else SUGGESTION_RULES
        )

    def score(self, current: RunSummary, history: Sequence[RunSummary]) -> EfficiencyReport:
        prior = prior_runs(current, history)

        t = time_score(current, prior)
        m = memory_score(current.resource_aggregate)
        c = cpu_score(current.resource_aggregate)
        k = consistency_score(prior)
        total = t + m + c + k

        report = EfficiencyReport(
            total_score=total,
            time_score=t,
            memory_score=m,
            cpu_score=c,
            consistency_score=k,
            letter_grade=letter_grade(total),
            description=score_description(total),
        )
        suggestions: List[str] = evaluate_rules(
            self.suggestion_rules, report, fallback=POSITIVE_SUGGESTION
        )
        logger.debug("Efficiency score %.1f (%s)", total, report.letter_grade)
        return replace(report, suggestions=tuple(suggestions))
