"""Tests for whisper_transcriber.service module."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from whisper_transcriber.config import TranscriberConfig
from whisper_transcriber.exceptions import DockerUnavailableError, ServiceStartError
from whisper_transcriber.service import (
    ServiceEndpoint,
    WhisperService,
    is_http_ready,
    wait_for,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_service(runtime, http_ready=lambda endpoint: True, **config_overrides):
    clock = FakeClock()
    config = TranscriberConfig(
        startup_timeout=5.0, ready_timeout=10.0, poll_interval=1.0, **config_overrides
    )
    service = WhisperService(
        runtime, config, clock=clock, sleep=clock.sleep, http_ready=http_ready
    )
    return service, clock


class TestServiceEndpoint:
    def test_urls(self) -> None:
        endpoint = ServiceEndpoint(host="localhost", port=9001)
        assert endpoint.base_url == "http://localhost:9001"
        assert endpoint.asr_url == "http://localhost:9001/asr"


class TestWaitFor:
    def test_immediate_success(self) -> None:
        clock = FakeClock()
        assert wait_for(lambda: True, timeout=5, clock=clock, sleep=clock.sleep) is True
        assert clock.sleeps == []

    def test_success_after_polls(self) -> None:
        clock = FakeClock()
        results = iter([False, False, True])
        assert wait_for(lambda: next(results), 5, 1.0, clock, clock.sleep) is True
        assert clock.sleeps == [1.0, 1.0]

    def test_deadline(self) -> None:
        clock = FakeClock()
        assert wait_for(lambda: False, 3, 1.0, clock, clock.sleep) is False
        assert clock.now == pytest.approx(3.0)

    def test_last_sleep_clipped_to_deadline(self) -> None:
        clock = FakeClock()
        wait_for(lambda: False, 2.5, 1.0, clock, clock.sleep)
        assert clock.sleeps == [1.0, 1.0, 0.5]

    def test_interrupt_propagates(self) -> None:
        def interrupted() -> bool:
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            wait_for(interrupted, 5)


class TestIsHttpReady:
    def test_ok_response(self) -> None:
        with patch("whisper_transcriber.service.requests.get") as get:
            get.return_value = MagicMock(status_code=200)
            assert is_http_ready(ServiceEndpoint()) is True
        assert get.call_args[0][0] == "http://localhost:9000/"

    def test_server_error(self) -> None:
        with patch("whisper_transcriber.service.requests.get") as get:
            get.return_value = MagicMock(status_code=503)
            assert is_http_ready(ServiceEndpoint()) is False

    def test_connection_refused(self) -> None:
        with patch(
            "whisper_transcriber.service.requests.get",
            side_effect=requests.exceptions.ConnectionError("refused"),
        ):
            assert is_http_ready(ServiceEndpoint()) is False


class TestBoundPorts:
    def test_reads_ports_of_running_containers(self, make_runtime) -> None:
        service, _ = make_service(make_runtime(containers={"a": 9000, "b": 9003, "c": None}))
        assert service.bound_ports() == [9000, 9003]

    def test_no_containers(self, make_runtime) -> None:
        service, _ = make_service(make_runtime())
        assert service.bound_ports() == []
        assert service.is_running() is False


class TestEnsureRunning:
    def test_reuses_running_service(self, fake_runtime) -> None:
        service, _ = make_service(fake_runtime)
        endpoint = service.ensure_running(9000)
        assert endpoint.port == 9000
        assert "run_detached" not in fake_runtime.call_names()

    def test_reuse_prefers_actual_bound_port(self, make_runtime) -> None:
        service, _ = make_service(make_runtime(containers={"abc": 9004}))
        endpoint = service.ensure_running(9000)
        assert endpoint.port == 9004

    def test_starts_absent_service(self, make_runtime) -> None:
        runtime = make_runtime()
        service, _ = make_service(runtime)

        endpoint = service.ensure_running(9001)

        assert endpoint == ServiceEndpoint(host="localhost", port=9001)
        start = next(call for call in runtime.calls if call[0] == "run_detached")
        assert start[1] == "onerahmet/openai-whisper-asr-webservice:latest"
        assert start[2] == {9001: 9000}
        assert start[3] == {"ASR_MODEL": "base", "ASR_ENGINE": "openai_whisper"}

    def test_model_override_reaches_container(self, make_runtime) -> None:
        runtime = make_runtime()
        service, _ = make_service(runtime, asr_model="small")
        service.ensure_running(9000)
        start = next(call for call in runtime.calls if call[0] == "run_detached")
        assert start[3]["ASR_MODEL"] == "small"

    def test_docker_refuses_start(self, make_runtime) -> None:
        service, _ = make_service(make_runtime(start_rc=125))
        with pytest.raises(ServiceStartError, match="port taken"):
            service.ensure_running(9000)

    def test_unanswered_ps_does_not_start(self, make_runtime) -> None:
        runtime = make_runtime(ps_fails=True)
        service, _ = make_service(runtime)
        with pytest.raises(DockerUnavailableError):
            service.ensure_running(9000)
        assert "run_detached" not in runtime.call_names()

    def test_container_never_visible(self, make_runtime) -> None:
        service, clock = make_service(make_runtime(start_becomes_visible=False))
        with pytest.raises(ServiceStartError, match="Failed to start"):
            service.ensure_running(9000)
        assert clock.now == pytest.approx(5.0)

    def test_http_never_ready(self, make_runtime) -> None:
        service, clock = make_service(make_runtime(), http_ready=lambda endpoint: False)
        with pytest.raises(ServiceStartError, match="did not answer"):
            service.ensure_running(9000)
        assert clock.now == pytest.approx(10.0)

    def test_http_ready_after_model_load(self, make_runtime) -> None:
        answers = iter([False, False, True])
        service, clock = make_service(make_runtime(), http_ready=lambda endpoint: next(answers))
        endpoint = service.ensure_running(9000)
        assert endpoint.port == 9000
        assert clock.now == pytest.approx(2.0)

    def test_console_messages(self, make_runtime) -> None:
        console = MagicMock()
        service, _ = make_service(make_runtime())
        service.ensure_running(9000, console=console)
        printed = " ".join(str(call.args[0]) for call in console.print.call_args_list)
        assert "Starting Whisper ASR web service on port 9000" in printed
        assert "ready" in printed
