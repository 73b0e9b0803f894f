"""
whisper_transcriber.validation - Preflight checks.

Validates the environment and the input file before any work is done.
Every check either returns quietly or raises a TranscriberError subclass
carrying a user-facing message.
"""

from __future__ import annotations

from pathlib import Path

from whisper_transcriber.config import TranscriberConfig
from whisper_transcriber.exceptions import (
    DockerUnavailableError,
    InputValidationError,
    UsageError,
)
from whisper_transcriber.runtime import DockerRuntime


def check_docker(runtime: DockerRuntime) -> None:
    """Check that the docker client is installed and the daemon is running.

    Raises:
        DockerUnavailableError: If docker is missing or not running
    """
    if not runtime.is_installed():
        raise DockerUnavailableError(
            "Docker not found in PATH.",
            "Install Docker Desktop (macOS/Windows) or docker-ce (Linux).",
        )
    if not runtime.is_running():
        raise DockerUnavailableError(
            "Docker is not running. Please start Docker and try again.",
        )


def validate_input_argument(arg: str | None) -> Path:
    """Turn the positional argument into a path.

    Raises:
        UsageError: If no argument was supplied
    """
    if arg is None or not arg.strip():
        raise UsageError("Usage: whisper-transcriber <input_file.m4a>")
    return Path(arg)


def validate_input_file(path: Path, config: TranscriberConfig) -> Path:
    """Validate the input audio file.

    Checks run in order: existence, size, extension.

    Args:
        path: Path to input file
        config: Resolved config (size threshold and extension)

    Returns:
        The validated path

    Raises:
        InputValidationError: If any check fails
    """
    if not path.is_file():
        raise InputValidationError(str(path), "does not exist.")

    size = path.stat().st_size
    if size <= config.min_input_bytes:
        raise InputValidationError(
            str(path),
            f"is too small (must be greater than {config.min_input_bytes // 1024}KB).",
        )

    if path.suffix != config.input_extension:
        raise InputValidationError(
            str(path),
            f"is not an {config.input_extension.lstrip('.')} file.",
        )

    return path
