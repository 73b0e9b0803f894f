"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import subprocess
from datetime import datetime
from pathlib import Path

import pytest

from whisper_transcriber.config import TranscriberConfig
from whisper_transcriber.convert import OUTPUT_MOUNT
from whisper_transcriber.exceptions import DockerUnavailableError

FIXED_NOW = datetime(2026, 2, 15, 12, 30, 45)


class FakeRuntime:
    """Stands in for DockerRuntime; records every docker call."""

    def __init__(
        self,
        installed: bool = True,
        running: bool = True,
        containers: dict[str, int] | None = None,
        conversion_rc: int = 0,
        start_rc: int = 0,
        start_becomes_visible: bool = True,
        ps_fails: bool = False,
    ) -> None:
        self.installed = installed
        self.running = running
        self.containers = dict(containers or {})
        self.conversion_rc = conversion_rc
        self.start_rc = start_rc
        self.start_becomes_visible = start_becomes_visible
        self.ps_fails = ps_fails
        self.calls: list[tuple] = []

    def is_installed(self) -> bool:
        return self.installed

    def is_running(self) -> bool:
        self.calls.append(("info",))
        return self.running

    def list_containers(self, image: str) -> list[str]:
        self.calls.append(("ps", image))
        if self.ps_fails:
            raise DockerUnavailableError("Cannot list running containers: daemon not responding")
        return list(self.containers)

    def host_port(self, container_id: str, container_port: int) -> int | None:
        return self.containers.get(container_id)

    def run_detached(self, image, ports=None, env=None) -> subprocess.CompletedProcess:
        self.calls.append(("run_detached", image, ports, env))
        if self.start_rc == 0 and self.start_becomes_visible:
            host_port = next(iter(ports)) if ports else None
            self.containers["started"] = host_port
        return subprocess.CompletedProcess(
            ["docker", "run", "-d"], self.start_rc, stdout="started\n", stderr="port taken"
        )

    def run_once(self, image, command, volumes=None) -> subprocess.CompletedProcess:
        self.calls.append(("run_once", image, command, volumes))
        if self.conversion_rc == 0:
            output_dir = next(host for host, mount in volumes.items() if mount == OUTPUT_MOUNT)
            (output_dir / Path(command[-1]).name).write_bytes(b"RIFF" + b"\x00" * 2048)
        return subprocess.CompletedProcess(
            ["docker", "run", "--rm"], self.conversion_rc, stdout="", stderr="Invalid data found"
        )

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_runtime() -> FakeRuntime:
    """Docker is up and an ASR container is already published on 9000."""
    return FakeRuntime(containers={"abc123": 9000})


@pytest.fixture
def config(tmp_path: Path) -> TranscriberConfig:
    """Config writing into tmp_path with fast polling."""
    return TranscriberConfig(
        output_root=tmp_path,
        poll_interval=0.01,
        startup_timeout=1.0,
        ready_timeout=1.0,
        retry_delay=0.0,
    )


@pytest.fixture
def sample_m4a(tmp_path: Path) -> Path:
    """A 50KB file with an .m4a extension."""
    path = tmp_path / "input" / "sample.m4a"
    path.parent.mkdir(exist_ok=True)
    path.write_bytes(b"\x00" * 50 * 1024)
    return path


@pytest.fixture
def tiny_m4a(tmp_path: Path) -> Path:
    """A 5KB file with an .m4a extension."""
    path = tmp_path / "input" / "tiny.m4a"
    path.parent.mkdir(exist_ok=True)
    path.write_bytes(b"\x00" * 5 * 1024)
    return path


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def make_runtime():
    """Factory for FakeRuntime instances with custom behaviour."""
    return FakeRuntime
