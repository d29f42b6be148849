"""
Rich rendering of report sets and stored run history.
"""

from __future__ import annotations

from typing import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from buildtrack_engine.config.settings import StageThresholds
from buildtrack_engine.models import RunSummary
from buildtrack_engine.reports import ReportSet
from buildtrack_engine.timing import classify_stage

from .messages import console as default_console

SPEED_STYLES = {"fast": "green", "warn": "yellow", "slow": "red"}

_MB = 1024 * 1024


def _format_millis(millis: float) -> str:
    if millis >= 60_000:
        return f"{millis / 60_000:.1f}m"
    if millis >= 1000:
        return f"{millis / 1000:.1f}s"
    return f"{int(millis)}ms"


def render_report_set(
    reports: ReportSet,
    thresholds: StageThresholds,
    console: Console = default_console,
) -> None:
    summary = reports.run_summary
    console.print(
        Panel.fit(
            f"Total build time: [bold]{_format_millis(summary.total_millis)}[/bold]",
            title="⏱️ Build Time Report",
        )
    )

    bottleneck = reports.bottleneck
    if bottleneck is not None and bottleneck.has_signal:
        table = Table(title="Stage Breakdown", show_header=True, header_style="bold magenta")
        table.add_column("Stage", style="cyan")
        table.add_column("Duration", justify="right")
        table.add_column("Share", justify="right")
        table.add_column("Speed")
        for stage in bottleneck.ranked_stages:
            speed = classify_stage(stage.millis, thresholds.fast_millis, thresholds.warn_millis)
            table.add_row(
                stage.name,
                _format_millis(stage.millis),
                f"{stage.percentage:.1f}%",
                f"[{SPEED_STYLES[speed]}]{speed}[/{SPEED_STYLES[speed]}]",
            )
        console.print(table)
        console.print(f"🎯 Primary bottleneck: [bold]{bottleneck.primary_stage}[/bold]")
        for recommendation in bottleneck.recommendations:
            console.print(f"   • {recommendation}")
    elif bottleneck is not None:
        console.print("[dim]No stage timings recorded[/dim]")

    regression = reports.regression
    if regression is not None:
        if regression.is_regression:
            verdict = f"[bold red]Regression ({regression.factor:.2f}x average)[/bold red]"
        elif regression.is_improvement:
            verdict = f"[bold green]Improvement ({regression.factor:.2f}x average)[/bold green]"
        elif regression.samples_considered < 2:
            verdict = "[dim]Not enough history to compare[/dim]"
        else:
            verdict = f"Stable ({regression.factor:.2f}x average)"
        console.print(f"📈 {verdict}  trend: {regression.trend.value}")

    efficiency = reports.efficiency
    if efficiency is not None:
        table = Table(title="Efficiency", show_header=True, header_style="bold blue")
        table.add_column("Component")
        table.add_column("Score", justify="right")
        table.add_row("Time", f"{efficiency.time_score:.0f}/30")
        table.add_row("Memory", f"{efficiency.memory_score:.0f}/25")
        table.add_row("CPU", f"{efficiency.cpu_score:.0f}/25")
        table.add_row("Consistency", f"{efficiency.consistency_score:.0f}/20")
        table.add_row(
            "[bold]Total[/bold]",
            f"[bold]{efficiency.total_score:.0f}/100 ({efficiency.letter_grade})[/bold]",
        )
        console.print(table)
        console.print(f"   {efficiency.description}")
        for suggestion in efficiency.suggestions:
            console.print(f"   💡 {suggestion}")

    for alert in reports.resource_alerts:
        console.print(f"⚠️ [yellow]{alert.message}[/yellow]")

    for failure in reports.failures:
        console.print(
            f"❌ [bold red]{failure.stage}[/bold red]: {failure.error_type}: {failure.error_message}"
        )
        for fix in failure.suggested_fixes:
            console.print(f"   🔧 {fix}")


def render_history(runs: Sequence[RunSummary], console: Console = default_console) -> None:
    table = Table(title=f"Build History ({len(runs)} runs)", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Timestamp")
    table.add_column("Total", justify="right")
    table.add_column("Peak Memory", justify="right")
    table.add_column("Avg CPU", justify="right")

    for index, run in enumerate(runs, 1):
        aggregate = run.resource_aggregate
        table.add_row(
            str(index),
            run.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            _format_millis(run.total_millis),
            f"{aggregate.peak_memory_bytes / _MB:.0f} MB" if aggregate.peak_memory_bytes else "-",
            f"{aggregate.avg_cpu_fraction * 100:.0f}%" if aggregate.avg_cpu_fraction else "-",
        )
    console.print(table)
