"""Console utilities for rich output."""

import os
from typing import Iterable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

QUIET_ENV = "DEPLOYCTL_QUIET"

# Global console instance
_console: Optional[Console] = None


def get_console() -> Console:
    """Get or create the global console instance."""
    global _console
    if _console is None:
        quiet = os.environ.get(QUIET_ENV, "0") == "1"
        _console = Console(quiet=quiet, emoji=False)
    return _console


def reset_console() -> None:
    """Drop the global console so the next call re-reads the environment."""
    global _console
    _console = None


def print_error(message: str, title: str = "Error"):
    """Print an error message."""
    console = get_console()
    console.print(Panel(
        message,
        title=f"[bold red]{title}[/bold red]",
        border_style="red"
    ))


def print_success(message: str, title: str = "Success"):
    """Print a success message."""
    console = get_console()
    console.print(Panel(
        f"[bold green]{message}[/bold green]",
        title=f"[bold green]{title}[/bold green]",
        border_style="green"
    ))


def print_step(title: str):
    """Print a progress step title."""
    get_console().print(f"[bold cyan]›[/bold cyan] {title}")


def create_table(title: str, columns: Iterable[str]) -> Table:
    """Create a formatted table."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    for col in columns:
        table.add_column(col)
    return table
