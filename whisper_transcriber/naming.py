"""
whisper_transcriber.naming - Collision-free output file names.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

TIMESTAMP_FORMAT = "%y-%m-%d-%H-%M-%S"


def generate_unique_filename(
    base_name: str,
    extension: str,
    directory: Path,
    clock: Callable[[], datetime] = datetime.now,
) -> Path:
    """Build a path in directory that does not exist yet.

    The name is `<base>-<timestamp>.<ext>`; on collision a counter is
    appended (`<base>-<timestamp>-1.<ext>`, `-2`, ...). The name is not
    reserved, so the caller should create the file straight away.

    Args:
        base_name: File name stem
        extension: Extension without the leading dot
        directory: Target directory
        clock: Returns the current time (injectable for tests)

    Returns:
        A path that did not exist when checked
    """
    timestamp = clock().strftime(TIMESTAMP_FORMAT)
    candidate = directory / f"{base_name}-{timestamp}.{extension}"
    counter = 1
    while candidate.exists():
        candidate = directory / f"{base_name}-{timestamp}-{counter}.{extension}"
        counter += 1
    return candidate
