"""Logging setup for the CLI."""

import sys
from typing import Optional, TextIO

from loguru import logger

SIMPLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
STRUCTURED_FORMAT = "{time} | {level} | {name}:{function}:{line} | {message}"


def setup_logging(
    level: str = "INFO",
    fmt: str = "simple",
    sink: Optional[TextIO] = None,
) -> int:
    """Replace loguru's default sink with a single stderr sink.

    Args:
        level: Minimum level to emit
        fmt: ``simple`` or ``structured``
        sink: Stream to write to (default ``sys.stderr``)

    Returns:
        The loguru handler id
    """
    logger.remove()

    format_string = SIMPLE_FORMAT if fmt == "simple" else STRUCTURED_FORMAT
    return logger.add(
        sink or sys.stderr,
        level=level.upper(),
        format=format_string,
        colorize=fmt == "simple",
    )
