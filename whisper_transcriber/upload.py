"""
whisper_transcriber.upload - Upload audio to the ASR service.

Posts the converted WAV to the service's /asr endpoint and streams the
plain-text response into the transcript file, with bounded retries.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from contextlib import nullcontext
from pathlib import Path
from typing import Any

import requests

from whisper_transcriber.config import TranscriberConfig
from whisper_transcriber.exceptions import UploadError
from whisper_transcriber.io import write_stream
from whisper_transcriber.logging import logger
from whisper_transcriber.service import ServiceEndpoint

CHUNK_SIZE = 64 * 1024


def build_asr_params(config: TranscriberConfig) -> dict[str, str]:
    """Fixed transcription parameters sent with every upload."""
    return {
        "task": "transcribe",
        "language": config.language,
        "output": config.output_format,
        "word_timestamps": str(config.word_timestamps).lower(),
    }


def transcribe_file(
    endpoint: ServiceEndpoint,
    audio_path: Path,
    output_path: Path,
    config: TranscriberConfig,
    console=None,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, Any]:
    """Upload audio_path for transcription and save the result.

    Args:
        endpoint: Running ASR service
        audio_path: Converted WAV file
        output_path: Transcript destination (must not exist yet)
        config: Resolved config
        console: Optional rich console for output
        sleep: Delay function used between retries

    Returns:
        Dict with 'output', 'bytes' and 'attempts'

    Raises:
        UploadError: If every attempt fails
    """
    params = build_asr_params(config)
    last_error: UploadError | None = None

    for attempt in range(1, config.upload_retries + 1):
        if console and attempt > 1:
            console.print(f"[yellow]  Retry {attempt}/{config.upload_retries}...[/yellow]")
        logger.debug("Uploading %s to %s (attempt %d)", audio_path, endpoint.asr_url, attempt)

        try:
            written = _post_audio(endpoint, audio_path, output_path, params, config, console)
            return {"output": str(output_path), "bytes": written, "attempts": attempt}
        except UploadError as e:
            last_error = e
            if not e.retryable:
                raise

        if attempt < config.upload_retries:
            sleep(config.retry_delay * attempt)

    raise UploadError(
        f"Error during transcription after {config.upload_retries} attempt(s): {last_error}",
        status_code=last_error.status_code if last_error else None,
    )


def _post_audio(
    endpoint: ServiceEndpoint,
    audio_path: Path,
    output_path: Path,
    params: dict[str, str],
    config: TranscriberConfig,
    console=None,
) -> int:
    status = console.status(f"Uploading {audio_path.name}...") if console else nullcontext()
    try:
        with open(audio_path, "rb") as f, status:
            # The service reads its options from the query string; the form
            # fields mirror them for servers that read the multipart body.
            response = requests.post(
                endpoint.asr_url,
                params=params,
                data=params,
                files={"audio_file": (audio_path.name, f, "audio/wav")},
                stream=True,
                timeout=config.upload_timeout,
            )
    except requests.exceptions.RequestException as e:
        raise UploadError(f"Request to {endpoint.asr_url} failed: {e}") from e
    except OSError as e:
        raise UploadError(f"Cannot read {audio_path}: {e}", retryable=False) from e

    with response:
        if response.status_code != 200:
            raise UploadError(
                f"ASR service returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
                retryable=response.status_code >= 500,
            )
        try:
            return write_stream(output_path, response.iter_content(chunk_size=CHUNK_SIZE))
        except requests.exceptions.RequestException as e:
            raise UploadError(f"Transcript download interrupted: {e}") from e
        except OSError as e:
            raise UploadError(
                f"Cannot write transcript {output_path}: {e}", retryable=False
            ) from e
