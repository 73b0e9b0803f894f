"""
whisper_transcriber.exceptions - Custom exception classes.

All whisper_transcriber exceptions inherit from TranscriberError. Every one
of them is terminal for the current invocation and maps to exit code 1.
"""


class TranscriberError(Exception):
    """Base exception for all whisper_transcriber errors."""

    pass


class ConfigError(TranscriberError):
    """Configuration loading or validation error."""

    pass


class DockerUnavailableError(TranscriberError):
    """The container runtime is missing or not running."""

    def __init__(self, message: str, install_hint: str | None = None):
        self.message = message
        self.install_hint = install_hint
        super().__init__(message)


class UsageError(TranscriberError):
    """Missing or malformed command-line argument."""

    pass


class InputValidationError(TranscriberError):
    """Input file is missing, too small, or has the wrong extension."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Input file '{path}' {message}")


class ConversionError(TranscriberError):
    """Audio conversion error."""

    pass


class PortUnavailableError(TranscriberError):
    """No usable TCP port found for the transcription service."""

    pass


class ServiceStartError(TranscriberError):
    """Transcription service could not be started or never became ready."""

    pass


class UploadError(TranscriberError):
    """Upload to the transcription service failed."""

    def __init__(self, message: str, status_code: int | None = None, retryable: bool = True):
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)


class OutputError(TranscriberError):
    """Result directory could not be created or written to."""

    pass
