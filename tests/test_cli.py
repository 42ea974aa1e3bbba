from __future__ import annotations

from typing import Any, Dict, List

import httpx
import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.client import ApiClient
from cli.config import CLIConfig, load_config


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.calculate_calls: List[Dict[str, Any]] = []
        self.realtime_payload: Dict[str, Any] = {
            "temperature": {"tempC1": 20.0, "tempC2": 45.0, "tempC3": 50.0, "tempC4": 60.0}
        }
        self.estimate_payload: Dict[str, Any] = {
            "currentCost": "697.67",
            "yearlyCost": "2093010.00",
            "recoveryBenefit": "436.04",
            "yearlyRecoveryBenefit": "1308120.00",
        }
        self.closed = False

    def get_realtime(self) -> Dict[str, Any]:
        return self.realtime_payload

    def calculate(self, **kwargs: Any) -> Dict[str, Any]:
        self.calculate_calls.append(kwargs)
        return self.estimate_payload

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def test_realtime_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["realtime"])

    assert result.exit_code == 0
    assert "tempC1: 20.0" in result.stdout
    assert "tempC4: 60.0" in result.stdout
    assert stub.closed is True


def test_calculate_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(
        app,
        [
            "--base-url",
            "http://estimator.local:9000/",
            "calculate",
            "--flow",
            "0.5",
            "--cost-type",
            "propane",
            "--cost-unit",
            "30",
            "--hours",
            "10",
            "--days",
            "300",
        ],
    )

    assert result.exit_code == 0
    assert "yearlyRecoveryBenefit: 1308120.00" in result.stdout
    assert stub.config.base_url == "http://estimator.local:9000"
    assert stub.calculate_calls == [
        {
            "flow": 0.5,
            "cost_type": "propane",
            "cost_unit": 30.0,
            "operating_hours": 10.0,
            "operating_days": 300.0,
        }
    ]
    assert stub.closed is True


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://example.test/")
    monkeypatch.setenv("CLI_REQUEST_TIMEOUT", "not-a-number")

    config = load_config()

    assert config == CLIConfig(base_url="http://example.test", timeout=30.0)


def _client_with_transport(handler) -> ApiClient:
    client = ApiClient(CLIConfig(base_url="http://estimator.test"))
    client.close()
    client._client = httpx.Client(
        base_url="http://estimator.test", transport=httpx.MockTransport(handler)
    )
    return client


def test_api_client_posts_camel_case_body() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"currentCost": "1.00"})

    client = _client_with_transport(handler)
    try:
        payload = client.calculate(
            flow=0.5,
            cost_type="electricity",
            cost_unit=30.0,
            operating_hours=10.0,
            operating_days=300.0,
        )
    finally:
        client.close()

    assert payload == {"currentCost": "1.00"}
    assert seen[0].url.path == "/api/calculate"
    assert b'"costType":"electricity"' in seen[0].content.replace(b" ", b"")


def test_api_client_reports_server_error(capsys) -> None:
    import typer

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "A server error occurred."})

    client = _client_with_transport(handler)
    try:
        with pytest.raises(typer.Exit):
            client.get_realtime()
    finally:
        client.close()

    assert "A server error occurred." in capsys.readouterr().err
