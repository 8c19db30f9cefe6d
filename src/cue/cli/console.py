"""Shared console utilities for CLI commands."""

from datetime import UTC, datetime

from rich.console import Console
from rich.markup import escape

# Shared console instance for all CLI commands
console = Console()


def error(msg: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]{escape(msg)}[/red]")


def warning(msg: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[yellow]{escape(msg)}[/yellow]")


def success(msg: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]{msg}[/green]")


def dim(msg: str) -> str:
    return f"[dim]{msg}[/dim]"


def format_countdown(when: datetime | None) -> str:
    """Format a countdown string for a future time, e.g. "in 2h 5m"."""
    if when is None:
        return dim("never")

    now = datetime.now(UTC)
    if when <= now:
        return "[green]now[/green]"

    total_seconds = int((when - now).total_seconds())
    if total_seconds < 60:
        return f"in {total_seconds}s"

    total_minutes = total_seconds // 60
    if total_minutes < 60:
        return f"in {total_minutes}m"

    hours, minutes = divmod(total_minutes, 60)
    if hours < 24:
        return f"in {hours}h {minutes}m" if minutes else f"in {hours}h"

    days, hours = divmod(hours, 24)
    return f"in {days}d {hours}h" if hours else f"in {days}d"


def format_time(when: datetime | None) -> str:
    if when is None:
        return dim("-")
    return when.strftime("%Y-%m-%d %H:%M:%S")
