"""
whisper_transcriber.config - YAML config loading and validation.

Handles loading whisper-transcriber.yaml, applying command-line overrides,
and validating all parameters. The resolved config is passed explicitly to
every pipeline stage.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from whisper_transcriber.exceptions import ConfigError

CONFIG_FILENAME = "whisper-transcriber.yaml"


class TranscriberConfig(BaseModel):
    """Resolved configuration for one transcription run."""

    host: str = "localhost"
    base_port: int = Field(default=9000, ge=1, le=65535)
    max_port_attempts: int = Field(default=100, gt=0)
    container_port: int = Field(default=9000, ge=1, le=65535)

    service_image: str = "onerahmet/openai-whisper-asr-webservice:latest"
    asr_model: str = "base"
    asr_engine: str = "openai_whisper"

    converter: str = "docker"
    ffmpeg_image: str = "jrottenberg/ffmpeg"

    min_input_bytes: int = Field(default=10240, ge=0)
    input_extension: str = ".m4a"

    result_dir_prefix: str = "transcribe"
    output_root: Path = Path(".")

    language: str = "en"
    output_format: str = "txt"
    word_timestamps: bool = False

    startup_timeout: float = Field(default=30.0, gt=0.0)
    ready_timeout: float = Field(default=300.0, gt=0.0)
    poll_interval: float = Field(default=1.0, gt=0.0)
    upload_timeout: float = Field(default=3600.0, gt=0.0)
    upload_retries: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=2.0, ge=0.0)
    docker_timeout: float = Field(default=15.0, gt=0.0)

    color: bool = True

    config_path: Path | None = None

    @field_validator("converter")
    @classmethod
    def validate_converter(cls, v: str) -> str:
        valid = {"docker", "local"}
        if v not in valid:
            raise ValueError(f"converter must be one of: {valid}")
        return v

    @field_validator("output_format")
    @classmethod
    def validate_output_format(cls, v: str) -> str:
        valid = {"txt", "vtt", "srt", "tsv", "json"}
        if v not in valid:
            raise ValueError(f"output_format must be one of: {valid}")
        return v

    @field_validator("input_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith("."):
            raise ValueError("input_extension must start with '.'")
        return v

    @property
    def asr_engine_env(self) -> dict[str, str]:
        return {"ASR_MODEL": self.asr_model, "ASR_ENGINE": self.asr_engine}


def find_config_file(directory: Path) -> Path | None:
    """Return the default config file in directory, if present."""
    candidate = directory / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file into a dict."""
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return raw


def merge_config(file_config: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge file config with command-line overrides. Overrides take precedence."""
    merged = file_config.copy()
    for key, value in overrides.items():
        if value is not None:
            merged[key] = value
    return merged


def load_config(
    config_path: Path | None = None,
    search_dir: Path | None = None,
    **overrides: Any,
) -> TranscriberConfig:
    """Load and validate configuration.

    Args:
        config_path: Explicit config file; must exist if given
        search_dir: Directory searched for whisper-transcriber.yaml when no
            explicit path is given
        **overrides: Values that win over the file (None values are ignored)

    Returns:
        Validated TranscriberConfig

    Raises:
        ConfigError: If the file is unreadable or a value is invalid
    """
    if config_path is None and search_dir is not None:
        config_path = find_config_file(search_dir)

    raw_config = read_config_file(config_path) if config_path else {}
    merged = merge_config(raw_config, overrides)
    merged["config_path"] = config_path

    try:
        return TranscriberConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
