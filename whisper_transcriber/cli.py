"""
whisper_transcriber.cli - Typer CLI entry point.

Single command: transcribe one m4a file. Every pipeline error is printed in
colour and turned into exit code 1.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from whisper_transcriber import __version__
from whisper_transcriber.config import load_config
from whisper_transcriber.exceptions import (
    DockerUnavailableError,
    TranscriberError,
    UsageError,
)
from whisper_transcriber.logging import configure_logging
from whisper_transcriber.pipeline import run_pipeline
from whisper_transcriber.runtime import DockerRuntime
from whisper_transcriber.utils import format_size

app = typer.Typer(
    name="whisper-transcriber",
    help="Transcribe an m4a recording with a local Whisper ASR web service.\n\n"
    "Converts the file to WAV with FFmpeg (in Docker), makes sure the ASR "
    "service container is running, uploads the audio and saves the transcript.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    if value:
        Console().print(f"whisper-transcriber {__version__}")
        raise typer.Exit()


@app.command()
def main(
    input_file: str | None = typer.Argument(None, help="Input .m4a file", show_default=False),
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="YAML config file (default: ./whisper-transcriber.yaml)"
    ),
    port: int | None = typer.Option(None, "--port", "-p", help="First port to try for the service"),
    converter: str | None = typer.Option(
        None, "--converter", help="Where FFmpeg runs: docker or local"
    ),
    model: str | None = typer.Option(None, "--model", "-m", help="ASR model for a new service"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable coloured output"),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Transcribe INPUT_FILE into transcribe-<YYMMDD>/transcribed-output/."""
    console = Console(no_color=no_color, highlight=False, soft_wrap=True)

    try:
        overrides = {"base_port": port, "converter": converter, "asr_model": model}
        if no_color:
            overrides["color"] = False
        config = load_config(config_file, search_dir=Path.cwd(), **overrides)
        if not config.color:
            console = Console(no_color=True, highlight=False, soft_wrap=True)
        configure_logging(verbose, console)

        result = run_pipeline(
            input_file,
            config,
            runtime=DockerRuntime(timeout=config.docker_timeout),
            console=console,
        )
    except UsageError as e:
        console.print(f"[yellow]{escape(str(e))}[/yellow]")
        raise typer.Exit(1)
    except DockerUnavailableError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        if e.install_hint:
            console.print(f"[dim]{e.install_hint}[/dim]")
        raise typer.Exit(1)
    except TranscriberError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    size = format_size(result.transcript_file.stat().st_size)
    console.print(
        f"[green]Transcription complete. Saved to: {result.transcript_file} ({size})[/green]"
    )
    console.print(f"[green]All files have been saved to {result.result_dir}.[/green]")
    console.print(
        f"[green]Total time elapsed: {int(result.elapsed_seconds)} seconds.[/green]"
    )
    console.print("[green]Done.[/green]")


if __name__ == "__main__":
    app()
