"""
whisper_transcriber.service - Whisper ASR web service lifecycle.

Makes sure a container of the ASR service image is running and answering
HTTP before anything is uploaded. A container this module starts is left
running after the process exits so later runs can reuse it.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import requests
from pydantic import BaseModel

from whisper_transcriber.config import TranscriberConfig
from whisper_transcriber.exceptions import ServiceStartError
from whisper_transcriber.logging import logger
from whisper_transcriber.runtime import DockerRuntime


class ServiceEndpoint(BaseModel):
    """Where the running ASR service can be reached."""

    host: str = "localhost"
    port: int = 9000

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def asr_url(self) -> str:
        return f"{self.base_url}/asr"


def wait_for(
    predicate: Callable[[], bool],
    timeout: float,
    interval: float = 1.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Poll predicate until it returns True or timeout seconds pass.

    Returns:
        True if the predicate succeeded, False on deadline
    """
    deadline = clock() + timeout
    while True:
        if predicate():
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            return False
        sleep(min(interval, remaining))


def is_http_ready(endpoint: ServiceEndpoint, timeout: float = 2.0) -> bool:
    """Check whether the service answers HTTP requests."""
    try:
        response = requests.get(f"{endpoint.base_url}/", timeout=timeout)
    except requests.exceptions.RequestException as e:
        logger.debug("ASR service not answering yet: %s", e)
        return False
    return response.status_code < 500


class WhisperService:
    """Manages the ASR service container through the docker CLI."""

    def __init__(
        self,
        runtime: DockerRuntime,
        config: TranscriberConfig,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        http_ready: Callable[[ServiceEndpoint], bool] = is_http_ready,
    ) -> None:
        self.runtime = runtime
        self.config = config
        self._clock = clock
        self._sleep = sleep
        self._http_ready = http_ready

    def running_containers(self) -> list[str]:
        return self.runtime.list_containers(self.config.service_image)

    def is_running(self) -> bool:
        return bool(self.running_containers())

    def bound_ports(self) -> list[int]:
        """Host ports published by running service containers."""
        ports = []
        for container_id in self.running_containers():
            port = self.runtime.host_port(container_id, self.config.container_port)
            if port is not None:
                ports.append(port)
        return ports

    def start(self, port: int) -> None:
        """Launch a new service container bound to port.

        Raises:
            ServiceStartError: If docker refuses to start the container
        """
        try:
            proc = self.runtime.run_detached(
                self.config.service_image,
                ports={port: self.config.container_port},
                env=self.config.asr_engine_env,
            )
        except Exception as e:
            raise ServiceStartError(f"Failed to start Whisper ASR web service: {e}") from e

        if proc.returncode != 0:
            raise ServiceStartError(
                f"Failed to start Whisper ASR web service: {proc.stderr.strip()}"
            )
        logger.debug("Started ASR container %s", proc.stdout.strip())

    def ensure_running(self, port: int, console=None) -> ServiceEndpoint:
        """Guarantee a reachable service, starting one on port if none runs.

        Args:
            port: Port allocated for a new container
            console: Optional rich console for output

        Returns:
            Endpoint of the running service

        Raises:
            ServiceStartError: If the service cannot be started or never
                becomes ready
        """
        if self.is_running():
            bound = self.bound_ports()
            if bound and port not in bound:
                logger.debug("Running service is bound to %s, not %d", bound, port)
                port = bound[0]
            if console:
                console.print(
                    f"[green]Whisper ASR web service is already running on port {port}.[/green]"
                )
            return ServiceEndpoint(host=self.config.host, port=port)

        if console:
            console.print(f"Starting Whisper ASR web service on port {port}...")
        self.start(port)

        endpoint = ServiceEndpoint(host=self.config.host, port=port)

        if console:
            console.print("Waiting for Whisper ASR web service to start...")
        visible = wait_for(
            self.is_running,
            timeout=self.config.startup_timeout,
            interval=self.config.poll_interval,
            clock=self._clock,
            sleep=self._sleep,
        )
        if not visible:
            raise ServiceStartError("Failed to start Whisper ASR web service.")

        ready = wait_for(
            lambda: self._http_ready(endpoint),
            timeout=self.config.ready_timeout,
            interval=self.config.poll_interval,
            clock=self._clock,
            sleep=self._sleep,
        )
        if not ready:
            raise ServiceStartError(
                f"Whisper ASR web service did not answer on {endpoint.base_url} "
                f"within {self.config.ready_timeout:.0f}s."
            )

        if console:
            console.print(f"[green]Whisper ASR web service is ready on port {port}.[/green]")
        return endpoint
