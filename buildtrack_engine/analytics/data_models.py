"""
Report types produced by the analyzers.

All reports are frozen dataclasses holding plain values so formatters can
consume them without touching the engine.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class RankedStage:
    name: str
    millis: int
    percentage: float


@dataclass(frozen=True)
class BottleneckReport:
    """Stages ranked by duration plus rule-based recommendations."""

    primary_stage: str = ""
    primary_millis: int = 0
    primary_percentage: float = 0.0
    ranked_stages: Tuple[RankedStage, ...] = ()
    recommendations: Tuple[str, ...] = ()

    @property
    def has_signal(self) -> bool:
        return bool(self.primary_stage)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary_stage": self.primary_stage,
            "primary_millis": self.primary_millis,
            "primary_percentage": round(self.primary_percentage, 2),
            "ranked_stages": [
                {"name": s.name, "millis": s.millis, "percentage": round(s.percentage, 2)}
                for s in self.ranked_stages
            ],
            "recommendations": list(self.recommendations),
        }


class Trend(str, Enum):
    """Direction of the most recent run-over-run totals."""

    INSUFFICIENT_DATA = "insufficient-data"
    IMPROVING = "improving"
    DEGRADING = "degrading"
    STABLE = "stable"
    VARIABLE = "variable"


@dataclass(frozen=True)
class RegressionReport:
    """Threshold verdict against the historical average, plus trend."""

    is_regression: bool = False
    is_improvement: bool = False
    factor: float = 1.0
    current_millis: int = 0
    average_millis: float = 0.0
    trend: Trend = Trend.INSUFFICIENT_DATA
    samples_considered: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["trend"] = self.trend.value
        data["factor"] = round(self.factor, 4)
        data["average_millis"] = round(self.average_millis, 1)
        return data


@dataclass(frozen=True)
class EfficiencyReport:
    """Weighted 0-100 score with its four sub-scores."""

    total_score: float
    time_score: float
    memory_score: float
    cpu_score: float
    consistency_score: float
    letter_grade: str
    description: str
    suggestions: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["suggestions"] = list(self.suggestions)
        return data


@dataclass(frozen=True)
class StageFailure:
    """A failed stage with the error details and suggested fixes."""

    stage: str
    error_type: str
    error_message: str
    traceback: str = ""
    suggested_fixes: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["suggested_fixes"] = list(self.suggested_fixes)
        return data
