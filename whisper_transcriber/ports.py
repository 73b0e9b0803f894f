"""
whisper_transcriber.ports - TCP port allocation for the ASR service.

Scans upward from a base port. A port already held by a running backend
container is reused; any other occupied port is skipped.
"""

from __future__ import annotations

import socket
from collections.abc import Callable, Iterable

from whisper_transcriber.exceptions import PortUnavailableError
from whisper_transcriber.logging import logger


def is_port_in_use(host: str, port: int, timeout: float = 0.5) -> bool:
    """Return True if something accepts TCP connections on host:port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.settimeout(timeout)
        return sock.connect_ex((host, port)) == 0


def find_available_port(
    base_port: int = 9000,
    max_attempts: int = 100,
    backend_ports: Iterable[int] = (),
    in_use: Callable[[int], bool] | None = None,
    host: str = "localhost",
) -> int:
    """Find a port for the transcription service.

    Args:
        base_port: First port to try
        max_attempts: Number of consecutive ports to try before giving up
        backend_ports: Host ports bound by already-running backend containers
        in_use: Probe returning True for occupied ports (defaults to a TCP
            connect against host)
        host: Host probed by the default probe

    Returns:
        The reused backend port, or the first free port

    Raises:
        PortUnavailableError: If every candidate is occupied by something else
    """
    if in_use is None:

        def in_use(port: int) -> bool:
            return is_port_in_use(host, port)

    reusable = set(backend_ports)
    last_port = min(base_port + max_attempts, 65536)

    for port in range(base_port, last_port):
        if not in_use(port):
            logger.debug("Port %d is free", port)
            return port
        if port in reusable:
            logger.debug("Port %d is held by a running ASR service, reusing", port)
            return port
        logger.debug("Port %d is busy, trying next", port)

    raise PortUnavailableError(
        f"No available port in range {base_port}-{last_port - 1}."
    )
