"""
whisper_transcriber - Turn a single m4a recording into a text transcript.

Runs a four-stage pipeline: preflight checks → FFmpeg conversion to WAV →
Whisper ASR service readiness → upload and transcript write-out.
"""

__version__ = "0.1.0"
