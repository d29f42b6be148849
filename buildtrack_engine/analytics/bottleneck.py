"""
Bottleneck analysis over one run's stage durations.

Ranks stages by duration, computes each stage's share of the summed stage
time (the reserved "total" entry is excluded) and emits recommendations
from rules over the top-ranked stage and the overall time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

from ..models import TOTAL_STAGE
from .data_models import BottleneckReport, RankedStage
from .rules import Rule, evaluate_rules, name_matches

logger = logging.getLogger(__name__)

COMPILE_KEYWORDS = ("compile", "transpile")
TEST_KEYWORDS = ("test", "verify")
PACKAGE_KEYWORDS = ("package", "install", "assemble")

COMPILE_SLOW_MILLIS = 30_000
TEST_SLOW_MILLIS = 60_000
PACKAGE_SLOW_MILLIS = 10_000
LONG_BUILD_MILLIS = 300_000
DOMINANT_SHARE_PERCENT = 40.0
COMPILE_DOMINANT_PERCENT = 50.0
TOP_THREE_FLOOR_PERCENT = 20.0

FALLBACK_RECOMMENDATION = "Monitor build trends to identify performance regressions"


@dataclass(frozen=True)
class BottleneckContext:
    """What the recommendation rules see."""

    top: RankedStage
    ranked: Tuple[RankedStage, ...]
    total_millis: int


def _top_three_each_above_floor(ctx: BottleneckContext) -> bool:
    top_three = ctx.ranked[:3]
    return len(top_three) == 3 and all(
        s.percentage > TOP_THREE_FLOOR_PERCENT for s in top_three
    )


def _top_three_names(ctx: BottleneckContext) -> str:
    names = [s.name for s in ctx.ranked[:3]]
    return f"{names[0]}, {names[1]} and {names[2]}"


DEFAULT_RULES: Tuple[Rule[BottleneckContext], ...] = (
    Rule(
        "compile-incremental",
        lambda c: name_matches(c.top.name, COMPILE_KEYWORDS) and c.top.millis > COMPILE_SLOW_MILLIS,
        "Consider enabling incremental compilation",
    ),
    Rule(
        "compile-split-modules",
        lambda c: name_matches(c.top.name, COMPILE_KEYWORDS) and c.top.millis > COMPILE_SLOW_MILLIS,
        "Consider splitting large modules into smaller ones",
    ),
    Rule(
        "compile-parallel",
        lambda c: name_matches(c.top.name, COMPILE_KEYWORDS) and c.top.percentage > COMPILE_DOMINANT_PERCENT,
        "Compilation is the main bottleneck - consider parallel compilation",
    ),
    Rule(
        "test-parallel",
        lambda c: name_matches(c.top.name, TEST_KEYWORDS) and c.top.millis > TEST_SLOW_MILLIS,
        "Consider running tests in parallel",
    ),
    Rule(
        "test-profile",
        lambda c: name_matches(c.top.name, TEST_KEYWORDS) and c.top.millis > TEST_SLOW_MILLIS,
        "Profile slow tests and run only essential test categories in CI",
    ),
    Rule(
        "package-overhead",
        lambda c: name_matches(c.top.name, PACKAGE_KEYWORDS) and c.top.millis > PACKAGE_SLOW_MILLIS,
        "Reduce packaging overhead: keep a warm build daemon and cache dependency resolution",
    ),
    Rule(
        "dominant-stage",
        lambda c: c.top.percentage > DOMINANT_SHARE_PERCENT,
        lambda c: (
            f"Stage '{c.top.name}' takes {c.top.percentage:.1f}% of build time"
            " - focus optimization there"
        ),
    ),
    Rule(
        "parallelize-top-three",
        _top_three_each_above_floor,
        lambda c: f"Stages {_top_three_names(c)} dominate together - consider running them in parallel",
    ),
    Rule(
        "long-build",
        lambda c: c.total_millis > LONG_BUILD_MILLIS,
        "Consider enabling build caching and parallel builds",
    ),
)


class BottleneckAnalyzer:
    """Ranks stages and recommends where to optimize."""

    def __init__(
        self,
        rules: Optional[Sequence[Rule[BottleneckContext]]] = None,
        fallback: str = FALLBACK_RECOMMENDATION,
    ):
        self.rules = tuple(rules) if rules is not None else DEFAULT_RULES
        self.fallback = fallback

    def analyze(self, stage_durations: Mapping[str, int]) -> BottleneckReport:
        """Rank stages by duration, descending; ties keep input order."""
        stages = [
            (name, max(0, int(millis)))
            for name, millis in (stage_durations or {}).items()
            if name != TOTAL_STAGE
        ]
        total = sum(millis for _, millis in stages)

        if not stages or total == 0:
            return BottleneckReport()

        ordered = sorted(stages, key=lambda item: item[1], reverse=True)
        ranked = tuple(
            RankedStage(name=name, millis=millis, percentage=millis * 100.0 / total)
            for name, millis in ordered
        )
        top = ranked[0]

        context = BottleneckContext(top=top, ranked=ranked, total_millis=total)
        recommendations = evaluate_rules(self.rules, context, fallback=self.fallback)

        logger.debug(
            "Primary bottleneck %s (%d ms, %.1f%%)", top.name, top.millis, top.percentage
        )
        return BottleneckReport(
            primary_stage=top.name,
            primary_millis=top.millis,
            primary_percentage=top.percentage,
            ranked_stages=ranked,
            recommendations=tuple(recommendations),
        )

    def recommendation_names(self, stage_durations: Mapping[str, int]) -> List[str]:
        """Names of the rules that fire for these durations (for diagnostics)."""
        report = self.analyze(stage_durations)
        if not report.has_signal:
            return []
        context = BottleneckContext(
            top=report.ranked_stages[0],
            ranked=report.ranked_stages,
            total_millis=sum(s.millis for s in report.ranked_stages),
        )
        return [rule.name for rule in self.rules if rule.applies(context)]
