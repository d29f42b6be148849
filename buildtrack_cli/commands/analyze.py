"""
Analyze command for the BuildTrack CLI

Analyzes recorded stage timings against the stored build history and
prints the report set with Rich tables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from buildtrack_engine.coordinator import RunCoordinator
from buildtrack_engine.exceptions import ConfigurationError

from ..ui.messages import (
    console,
    show_error_message,
    show_success_message,
    show_warning_message,
)
from ..ui.report import render_report_set
from ..utils.config_helpers import read_stage_durations, resolve_config, summary_from_durations


def analyze_stages(
    stages_json: str,
    config: Optional[str] = None,
    history_file: Optional[str] = None,
    save: bool = False,
    verbose: bool = False,
) -> None:
    """
    Analyze a ``{stage: millis}`` file.

    [dim]Examples:[/dim]
        buildtrack analyze stages.json
        buildtrack analyze stages.json --save
    """
    try:
        cfg = resolve_config(config, history_file)
    except (FileNotFoundError, ConfigurationError) as e:
        show_error_message("Could not load configuration", str(e))
        raise typer.Exit(1)

    try:
        durations = read_stage_durations(Path(stages_json))
    except FileNotFoundError as e:
        show_error_message(str(e))
        raise typer.Exit(1)
    except ValueError as e:
        show_error_message("Invalid stage timing file", str(e))
        raise typer.Exit(1)

    if verbose:
        console.print(f"📁 [dim]History: {cfg.history.path}[/dim]")

    coordinator = RunCoordinator(cfg)
    try:
        summary = summary_from_durations(durations)
        reports = coordinator.analyze_summary(summary)
        render_report_set(reports, cfg.thresholds)

        if save:
            coordinator.history.append(summary)
            if coordinator.history.save(cfg.history.path, cfg.history.capacity):
                show_success_message("Run saved to history", str(cfg.history.path))
            else:
                show_warning_message("Could not save run to history")
    finally:
        coordinator.close()
