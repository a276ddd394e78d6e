"""CLI utilities."""

from .console import create_table, get_console, print_error, print_step, print_success
from .logging import setup_logging

__all__ = [
    "create_table",
    "get_console",
    "print_error",
    "print_step",
    "print_success",
    "setup_logging",
]
