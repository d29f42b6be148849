"""
History command for the BuildTrack CLI

Lists the runs stored in the build history file.
"""

from __future__ import annotations

from typing import Optional

import typer

from buildtrack_engine.exceptions import ConfigurationError
from buildtrack_engine.history import HistoryStore

from ..ui.messages import console, show_error_message, show_warning_message
from ..ui.report import render_history
from ..utils.config_helpers import resolve_config


def show_history(
    config: Optional[str] = None,
    history_file: Optional[str] = None,
) -> None:
    try:
        cfg = resolve_config(config, history_file)
    except (FileNotFoundError, ConfigurationError) as e:
        show_error_message("Could not load configuration", str(e))
        raise typer.Exit(1)

    path = cfg.history.path
    runs = HistoryStore().load(path)
    if not runs:
        show_warning_message(f"No build history found at {path}")
        return

    console.print(f"📁 [dim]History: {path}[/dim]")
    render_history(runs)
