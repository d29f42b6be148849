"""
Analytics over tracked runs: bottlenecks, regressions, efficiency and
stage failures.
"""

from .data_models import (
    BottleneckReport,
    EfficiencyReport,
    RankedStage,
    RegressionReport,
    StageFailure,
    Trend,
)
from .rules import Rule, evaluate_rules
from .bottleneck import BottleneckAnalyzer, BottleneckContext
from .regression import RegressionDetector, classify_trend
from .efficiency import EfficiencyScorer, letter_grade, score_description
from .failures import FailureAnalyzer

__all__ = [
    # Data models
    "BottleneckReport",
    "EfficiencyReport",
    "RankedStage",
    "RegressionReport",
    "StageFailure",
    "Trend",
    # Rules
    "Rule",
    "evaluate_rules",
    # Analyzers
    "BottleneckAnalyzer",
    "BottleneckContext",
    "RegressionDetector",
    "classify_trend",
    "EfficiencyScorer",
    "letter_grade",
    "score_description",
    "FailureAnalyzer",
]
