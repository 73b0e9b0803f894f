"""
whisper_transcriber.layout - Result directory management.

One result directory per day, named transcribe-<YYMMDD>, holding the
converted audio and the transcripts.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from whisper_transcriber.exceptions import OutputError


class ResultDirectory:
    """Represents the dated output directory of a run."""

    def __init__(self, root: Path, prefix: str = "transcribe", date: datetime | None = None) -> None:
        date = date or datetime.now()
        self.path = root / f"{prefix}-{date.strftime('%y%m%d')}"

    @property
    def working_dir(self) -> Path:
        return self.path / "working-files"

    @property
    def transcribed_dir(self) -> Path:
        return self.path / "transcribed-output"

    def create(self) -> None:
        """Create the directory structure. Safe to call when it already exists.

        Raises:
            OutputError: If a directory cannot be created
        """
        try:
            self.working_dir.mkdir(parents=True, exist_ok=True)
            self.transcribed_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Cannot create result directory {self.path}: {e}") from e
