"""Test the command line."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

import httpstime.__main__ as cli
from httpstime import schemas
from httpstime.core.errors import TransportError

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    """Leave pytest's log capture in place."""
    monkeypatch.setattr(cli, "setup_logging", lambda *args: None)


def test_query_http(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the report printed for one HTTP sample."""
    calls: list[str] = []

    async def fake_measure_http(url: str, timeout: float) -> schemas.SyncSample:
        calls.append(url)
        return schemas.SyncSample(t1=100.0, server_time=100.25, t2=100.5)

    monkeypatch.setattr("httpstime.client.measure_http", fake_measure_http)
    result = runner.invoke(cli.app, ["query", "localhost:8123"])

    assert result.exit_code == 0
    assert calls == ["http://localhost:8123/.well-known/time"]
    assert result.stdout.splitlines() == [
        "Server: http://localhost:8123/.well-known/time",
        "Server time: 100.250000",
        "Local time:  100.250000 (RTT-adjusted)",
        "Offset:      0.000 milliseconds",
        "RTT:         500.000 milliseconds",
    ]


def test_query_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that a failed measurement exits non-zero with the phase."""

    async def fake_measure_http(url: str, timeout: float) -> schemas.SyncSample:
        raise TransportError(f"Failed to connect to {url}", phase="connect")

    monkeypatch.setattr("httpstime.client.measure_http", fake_measure_http)
    result = runner.invoke(cli.app, ["query", "localhost:1"])

    assert result.exit_code == 1
    assert "Error: connect: Failed to connect" in result.output


def test_query_bad_cert_hash() -> None:
    """Test that a malformed pin is rejected before any network activity."""
    result = runner.invoke(cli.app, ["query", "--session", "--cert-hash", "c2hvcnQ=", "localhost:1"])

    assert result.exit_code == 1
    assert "hash length" in result.output


def test_serve_tls_without_key(tmp_path: Path) -> None:
    """Test that the server refuses half a TLS configuration."""
    result = runner.invoke(cli.app, ["serve", "--tls-cert", str(tmp_path / "cert.pem")])

    assert result.exit_code == 2
    assert "--tls-key" in result.output


def test_query_count_without_session(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    """Test that --count over HTTP takes one sample and says so."""
    calls: list[str] = []

    async def fake_measure_http(url: str, timeout: float) -> schemas.SyncSample:
        calls.append(url)
        return schemas.SyncSample(t1=100.0, server_time=100.25, t2=100.5)

    monkeypatch.setattr("httpstime.client.measure_http", fake_measure_http)
    result = runner.invoke(cli.app, ["query", "--count", "3", "localhost:8123"])

    assert result.exit_code == 0
    assert len(calls) == 1
    assert "--count only applies to sessions" in caplog.text
