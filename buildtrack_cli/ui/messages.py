"""Formatted status messages shared by CLI commands."""

from __future__ import annotations

from typing import Optional

from rich.console import Console

console = Console()


def show_success_message(message: str, details: Optional[str] = None):
    """Show a formatted success message."""
    console.print(f"✅ [bold green]{message}[/bold green]")
    if details:
        console.print(f"   [dim]{details}[/dim]")


def show_warning_message(message: str, details: Optional[str] = None):
    """Show a formatted warning message."""
    console.print(f"⚠️ [bold yellow]{message}[/bold yellow]")
    if details:
        console.print(f"   [dim]{details}[/dim]")


def show_error_message(message: str, details: Optional[str] = None):
    """Show a formatted error message."""
    console.print(f"❌ [bold red]{message}[/bold red]")
    if details:
        console.print(f"   [dim]{details}[/dim]")
