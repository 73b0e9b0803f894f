"""
whisper_transcriber.pipeline - Stage sequencing.

Runs preflight → conversion → service readiness → transcription, stopping
at the first stage that raises. Errors propagate to the caller untouched.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel

from whisper_transcriber.config import TranscriberConfig
from whisper_transcriber.convert import convert_to_wav
from whisper_transcriber.layout import ResultDirectory
from whisper_transcriber.logging import logger
from whisper_transcriber.naming import generate_unique_filename
from whisper_transcriber.ports import find_available_port, is_port_in_use
from whisper_transcriber.runtime import DockerRuntime
from whisper_transcriber.service import ServiceEndpoint, WhisperService
from whisper_transcriber.upload import transcribe_file
from whisper_transcriber.validation import (
    check_docker,
    validate_input_argument,
    validate_input_file,
)


class PipelineResult(BaseModel):
    """Artifacts and timing of a successful run."""

    input_file: Path
    result_dir: Path
    converted_file: Path
    transcript_file: Path
    endpoint: ServiceEndpoint
    elapsed_seconds: float


def run_pipeline(
    input_arg: str | None,
    config: TranscriberConfig,
    runtime: DockerRuntime | None = None,
    service: WhisperService | None = None,
    console=None,
    clock: Callable[[], datetime] = datetime.now,
    timer: Callable[[], float] = time.monotonic,
    port_in_use: Callable[[int], bool] | None = None,
) -> PipelineResult:
    """Transcribe one audio file end to end.

    Args:
        input_arg: Raw positional argument (None if omitted)
        config: Resolved config
        runtime: Docker runtime (defaults to the docker CLI)
        service: ASR service manager (defaults to one built on runtime)
        console: Optional rich console for progress output
        clock: Wall clock used for directory and file names
        timer: Monotonic timer used for the elapsed time
        port_in_use: Port probe (defaults to a TCP connect on config.host)

    Returns:
        PipelineResult describing the written files

    Raises:
        TranscriberError: From whichever stage failed first
    """
    started = timer()
    runtime = runtime or DockerRuntime(timeout=config.docker_timeout)
    service = service or WhisperService(runtime, config)

    check_docker(runtime)

    if console:
        console.print("Step 1: Validating input file and setting up directories...")
    input_path = validate_input_argument(input_arg)
    validate_input_file(input_path, config)

    if port_in_use is None:

        def port_in_use(port: int) -> bool:
            return is_port_in_use(config.host, port)

    port = find_available_port(
        base_port=config.base_port,
        max_attempts=config.max_port_attempts,
        backend_ports=service.bound_ports(),
        in_use=port_in_use,
    )
    logger.debug("Allocated port %d", port)

    result_dir = ResultDirectory(config.output_root, config.result_dir_prefix, clock())
    result_dir.create()

    if console:
        console.print(
            f"Step 2: Converting {input_path} to WAV format. This may take a few moments..."
        )
    converted = generate_unique_filename("converted", "wav", result_dir.working_dir, clock)
    convert_to_wav(input_path, converted, runtime, config, console=console)

    if console:
        console.print(f"Step 3: Ensuring Whisper ASR web service is running on port {port}...")
    endpoint = service.ensure_running(port, console=console)

    if console:
        console.print(
            f"Step 4: Uploading {converted} to Whisper service for transcription..."
        )
    transcript = generate_unique_filename(
        "transcribed", config.output_format, result_dir.transcribed_dir, clock
    )
    transcribe_file(endpoint, converted, transcript, config, console=console)

    return PipelineResult(
        input_file=input_path,
        result_dir=result_dir.path,
        converted_file=converted,
        transcript_file=transcript,
        endpoint=endpoint,
        elapsed_seconds=timer() - started,
    )
