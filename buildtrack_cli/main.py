#!/usr/bin/env python3
"""
BuildTrack CLI

Rich-based command line for the BuildTrack analytics engine.
"""

from __future__ import annotations

from typing import Optional

import typer

from .commands.analyze import analyze_stages
from .commands.history import show_history
from .ui.messages import console

# Main app
app = typer.Typer(
    name="buildtrack",
    help="BuildTrack CLI - build time analytics and regression tracking",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


def version_callback(value: bool):
    if value:
        from buildtrack_cli import __version__
        console.print(f"BuildTrack v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version information"
    ),
):
    """
    [bold blue]BuildTrack CLI[/bold blue]

    Stage timing, bottleneck, regression and efficiency reports for builds.

    [dim]Examples:[/dim]
        buildtrack history                     # Show stored runs
        buildtrack analyze stages.json --save  # Analyze and record a run
    """
    pass


@app.command("history")
def history(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to tracker config YAML"),
    history_file: Optional[str] = typer.Option(None, "--history-file", help="Path to the build history JSON file"),
):
    """📜 Show stored build runs."""
    show_history(config=config, history_file=history_file)


@app.command("analyze")
def analyze(
    stages_json: str = typer.Argument(..., help="JSON file mapping stage names to milliseconds"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to tracker config YAML"),
    history_file: Optional[str] = typer.Option(None, "--history-file", help="Path to the build history JSON file"),
    save: bool = typer.Option(False, "--save", help="Append the analyzed run to history"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
):
    """📊 Analyze stage timings against build history."""
    analyze_stages(
        stages_json=stages_json,
        config=config,
        history_file=history_file,
        save=save,
        verbose=verbose,
    )


if __name__ == "__main__":
    app()
