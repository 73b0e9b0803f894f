"""
whisper_transcriber.runtime - Docker CLI wrapper.

All container interaction goes through the docker command-line client.
Nothing here interprets results beyond exit codes and trimmed stdout; the
stages built on top decide what a failure means.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from whisper_transcriber.exceptions import DockerUnavailableError
from whisper_transcriber.logging import logger


class DockerRuntime:
    """Runs docker CLI commands as blocking subprocesses."""

    def __init__(self, binary: str = "docker", timeout: float = 15.0) -> None:
        self.binary = binary
        self.timeout = timeout

    def _run(
        self,
        args: list[str],
        timeout: float | None = None,
        capture: bool = True,
    ) -> subprocess.CompletedProcess:
        cmd = [self.binary, *args]
        logger.debug("Running: %s", " ".join(cmd))
        return subprocess.run(
            cmd,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )

    def is_installed(self) -> bool:
        return shutil.which(self.binary) is not None

    def is_running(self) -> bool:
        """Check that the docker daemon answers `docker info`."""
        try:
            proc = self._run(["info"], timeout=self.timeout)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug("docker info failed: %s", e)
            return False
        return proc.returncode == 0

    def list_containers(self, image: str) -> list[str]:
        """Return ids of running containers created from image.

        Raises:
            DockerUnavailableError: If `docker ps` cannot answer; an empty
                list always means no container is running
        """
        try:
            proc = self._run(
                ["ps", "-q", "--filter", f"ancestor={image}"],
                timeout=self.timeout,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise DockerUnavailableError(f"Cannot list running containers: {e}") from e
        if proc.returncode != 0:
            raise DockerUnavailableError(
                f"Cannot list running containers: {proc.stderr.strip() or 'docker ps failed'}"
            )
        return [line.strip() for line in proc.stdout.splitlines() if line.strip()]

    def host_port(self, container_id: str, container_port: int) -> int | None:
        """Return the host port bound to container_port/tcp, if any."""
        template = (
            "{{with index .HostConfig.PortBindings "
            f'"{container_port}/tcp"'
            "}}{{(index . 0).HostPort}}{{end}}"
        )
        try:
            proc = self._run(
                ["inspect", "--format", template, container_id],
                timeout=self.timeout,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug("docker inspect failed: %s", e)
            return None
        value = proc.stdout.strip()
        if proc.returncode != 0 or not value.isdigit():
            return None
        return int(value)

    def run_detached(
        self,
        image: str,
        ports: dict[int, int] | None = None,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess:
        """Start a long-lived background container. Returns the docker result."""
        args = ["run", "-d"]
        for host_port, container_port in (ports or {}).items():
            args.extend(["-p", f"{host_port}:{container_port}"])
        for key, value in (env or {}).items():
            args.extend(["-e", f"{key}={value}"])
        args.append(image)
        return self._run(args, timeout=self.timeout)

    def run_once(
        self,
        image: str,
        command: list[str],
        volumes: dict[Path, str] | None = None,
    ) -> subprocess.CompletedProcess:
        """Run a throwaway container to completion (`docker run --rm`)."""
        args = ["run", "--rm"]
        for host_dir, mount in (volumes or {}).items():
            args.extend(["-v", f"{host_dir}:{mount}"])
        args.append(image)
        args.extend(command)
        return self._run(args)
