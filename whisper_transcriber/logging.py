"""
whisper_transcriber.logging - Logging routed through the run's Rich console.

Debug output (docker commands, upload attempts) shares the console with the
step messages, so --no-color and output capture apply to both.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger("whisper_transcriber")


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Attach a RichHandler to the package logger.

    Replaces any handler from an earlier call, so each CLI invocation logs to
    its own console. Messages do not propagate to the root logger.

    Args:
        verbose: DEBUG level if True, otherwise WARNING
        console: Console to write to (a default stderr console if None)
    """
    level = logging.DEBUG if verbose else logging.WARNING
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
