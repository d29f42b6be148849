"""
Tests for BottleneckAnalyzer ranking and recommendations.
"""

import pytest

from buildtrack_engine.analytics import BottleneckAnalyzer, BottleneckReport
from buildtrack_engine.analytics.bottleneck import FALLBACK_RECOMMENDATION


@pytest.fixture
def analyzer():
    return BottleneckAnalyzer()


class TestRanking:
    """Ranking and percentages."""

    def test_scenario_primary_stage(self, analyzer):
        report = analyzer.analyze({"validate": 200, "compile": 3200, "test": 8400, "package": 600})
        assert report.primary_stage == "test"
        assert report.primary_millis == 8400
        assert report.primary_percentage == pytest.approx(8400 * 100 / 12400)
        assert report.primary_percentage == pytest.approx(67.74, abs=0.01)
        assert [s.name for s in report.ranked_stages] == ["test", "compile", "package", "validate"]

    def test_total_key_excluded(self, analyzer):
        report = analyzer.analyze({"compile": 300, "test": 100, "total": 10_000})
        assert [s.name for s in report.ranked_stages] == ["compile", "test"]
        assert report.primary_percentage == pytest.approx(75.0)

    @pytest.mark.parametrize(
        "durations",
        [
            {"a": 1},
            {"a": 3, "b": 3, "c": 3},
            {"a": 7, "b": 0, "c": 13, "d": 1, "total": 99},
            {f"s{i}": i * 37 % 101 + 1 for i in range(25)},
        ],
    )
    def test_percentages_sum_to_100_and_sorted(self, analyzer, durations):
        report = analyzer.analyze(durations)
        assert sum(s.percentage for s in report.ranked_stages) == pytest.approx(100.0)
        millis = [s.millis for s in report.ranked_stages]
        assert millis == sorted(millis, reverse=True)

    def test_ties_keep_input_order(self, analyzer):
        report = analyzer.analyze({"b": 100, "a": 100, "c": 200, "d": 100})
        assert [s.name for s in report.ranked_stages] == ["c", "b", "a", "d"]

    @pytest.mark.parametrize("durations", [{}, {"total": 500}, {"a": 0, "b": 0}, None])
    def test_no_signal(self, analyzer, durations):
        report = analyzer.analyze(durations)
        assert report == BottleneckReport()
        assert not report.has_signal
        assert report.ranked_stages == ()

    def test_idempotent(self, analyzer):
        durations = {"compile": 45_000, "test": 70_000, "package": 12_000}
        assert analyzer.analyze(durations) == analyzer.analyze(durations)
        assert analyzer.analyze(durations).to_dict() == analyzer.analyze(durations).to_dict()


class TestRecommendations:
    """Rule-based recommendations over the top-ranked stage."""

    def test_fallback_when_nothing_fires(self, analyzer):
        report = analyzer.analyze({"a": 100, "b": 100, "c": 100, "d": 100, "e": 100})
        assert report.recommendations == (FALLBACK_RECOMMENDATION,)

    def test_slow_compile(self, analyzer):
        names = analyzer.recommendation_names({"compile": 40_000, "test": 35_000, "lint": 30_000})
        assert names[:2] == ["compile-incremental", "compile-split-modules"]
        assert "compile-parallel" not in names

    def test_dominant_compile(self, analyzer):
        names = analyzer.recommendation_names({"compile-sources": 60_000, "test": 10_000})
        assert "compile-parallel" in names
        assert "dominant-stage" in names

    def test_slow_tests(self, analyzer):
        report = analyzer.analyze({"integration-test": 90_000, "compile": 10_000})
        assert "Consider running tests in parallel" in report.recommendations

    def test_category_match_is_case_insensitive(self, analyzer):
        names = analyzer.recommendation_names({"Verify": 61_000, "build": 60_000})
        assert "test-parallel" in names

    def test_slow_package(self, analyzer):
        names = analyzer.recommendation_names({"package": 11_000, "compile": 10_000, "test": 9_000})
        assert names[0] == "package-overhead"

    def test_dominant_stage_message(self, analyzer):
        report = analyzer.analyze({"validate": 200, "compile": 3200, "test": 8400, "package": 600})
        assert "Stage 'test' takes 67.7% of build time - focus optimization there" in report.recommendations

    def test_parallelize_top_three(self, analyzer):
        report = analyzer.analyze({"a": 30, "b": 25, "c": 25, "d": 20})
        assert any("a, b and c" in r for r in report.recommendations)

    def test_top_three_needs_each_above_floor(self, analyzer):
        names = analyzer.recommendation_names({"a": 30, "b": 30, "c": 20, "d": 20})
        assert "parallelize-top-three" not in names

    def test_long_build(self, analyzer):
        names = analyzer.recommendation_names({f"stage-{i}": 60_000 for i in range(6)})
        assert names == ["long-build"]

    def test_custom_rules(self):
        from buildtrack_engine.analytics import Rule

        analyzer = BottleneckAnalyzer(
            rules=[Rule("always", lambda c: True, lambda c: f"top={c.top.name}")],
        )
        assert analyzer.analyze({"x": 1, "y": 2}).recommendations == ("top=y",)
