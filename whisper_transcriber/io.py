"""
whisper_transcriber.io - Atomic file writes.
"""

from __future__ import annotations

import tempfile
from collections.abc import Iterable
from pathlib import Path


def write_stream(path: Path, chunks: Iterable[bytes]) -> int:
    """Write byte chunks to path atomically.

    Writes to a temp file in the destination directory first, then renames,
    so an interrupted download never leaves a partial file at path.

    Args:
        path: Destination path
        chunks: Byte chunks to write (empty chunks are skipped)

    Returns:
        Number of bytes written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with tempfile.NamedTemporaryFile(
        mode="wb",
        dir=path.parent,
        delete=False,
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            for chunk in chunks:
                if chunk:
                    tmp.write(chunk)
                    written += len(chunk)
        except BaseException:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise
    tmp_path.rename(path)
    return written
