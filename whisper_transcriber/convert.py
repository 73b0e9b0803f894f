"""
whisper_transcriber.convert - FFmpeg conversion to WAV.

Converts the input recording into a WAV file the ASR service accepts.
FFmpeg runs inside a throwaway container by default, or as a local binary
when the config says `converter: local`.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

from whisper_transcriber.config import TranscriberConfig
from whisper_transcriber.exceptions import ConversionError
from whisper_transcriber.logging import logger
from whisper_transcriber.runtime import DockerRuntime

INPUT_MOUNT = "/input"
OUTPUT_MOUNT = "/output"


def build_docker_command(input_path: Path, output_path: Path) -> tuple[dict[Path, str], list[str]]:
    """Return (volumes, ffmpeg args) for a containerised conversion."""
    input_dir = input_path.resolve().parent
    output_dir = output_path.resolve().parent
    if input_dir == output_dir:
        volumes = {output_dir: OUTPUT_MOUNT}
        input_mount = OUTPUT_MOUNT
    else:
        volumes = {input_dir: f"{INPUT_MOUNT}:ro", output_dir: OUTPUT_MOUNT}
        input_mount = INPUT_MOUNT
    args = [
        "-nostdin",
        "-i",
        f"{input_mount}/{input_path.name}",
        f"{OUTPUT_MOUNT}/{output_path.name}",
    ]
    return volumes, args


def build_local_command(input_path: Path, output_path: Path) -> list[str]:
    """Return the command line for a local FFmpeg conversion."""
    return [
        "ffmpeg",
        "-nostdin",
        "-i",
        str(input_path),
        str(output_path),
    ]


def convert_to_wav(
    input_path: Path,
    output_path: Path,
    runtime: DockerRuntime,
    config: TranscriberConfig,
    console=None,
) -> dict[str, Any]:
    """Convert an audio file to WAV using FFmpeg.

    Args:
        input_path: Validated source recording
        output_path: Destination WAV path (must not exist yet)
        runtime: Docker runtime used when converter is "docker"
        config: Resolved config
        console: Optional rich console for output

    Returns:
        Dict with conversion results

    Raises:
        ConversionError: If FFmpeg fails or produces no output
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    result = {
        "source": str(input_path),
        "output": str(output_path),
        "converter": config.converter,
        "success": False,
    }

    try:
        if config.converter == "docker":
            volumes, args = build_docker_command(input_path, output_path)
            proc = runtime.run_once(config.ffmpeg_image, args, volumes=volumes)
        else:
            cmd = build_local_command(input_path, output_path)
            logger.debug("Running: %s", " ".join(cmd))
            proc = subprocess.run(cmd, capture_output=True, text=True)

        if proc.returncode != 0:
            logger.debug("FFmpeg stderr:\n%s", proc.stderr)
            raise ConversionError(
                f"Error during audio conversion (exit code {proc.returncode}): "
                f"{_last_line(proc.stderr)}"
            )

        if not output_path.exists():
            raise ConversionError(f"Error during audio conversion: {output_path} was not created")

        result["success"] = True
        result["output_size"] = output_path.stat().st_size

    except ConversionError:
        raise
    except Exception as e:
        raise ConversionError(f"Error during audio conversion: {e}") from e

    if console:
        console.print(f"[green]Conversion complete. Output file: {output_path}[/green]")

    return result


def _last_line(text: str | None) -> str:
    lines = [line for line in (text or "").splitlines() if line.strip()]
    return lines[-1] if lines else "no output"
