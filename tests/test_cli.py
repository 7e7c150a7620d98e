# /tests/test_cli.py
from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError
from typer.testing import CliRunner

from tests.fakes import FakeResponse, FakeTransport
from trustfetch.adapters.cli import main as cli
from trustfetch.config import Settings, settings
from trustfetch.domain.fetch_service import FailurePolicy

runner = CliRunner()

A = "https://a.example"
B = "https://b.example"


def _json_lines(output: str) -> list[dict]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


@pytest.fixture
def fake_transport(monkeypatch: pytest.MonkeyPatch):
    created: dict = {}

    def install(responses, **kwargs) -> FakeTransport:
        transport = FakeTransport(responses, **kwargs)

        def configure(trust_store, skip_verification, **_kw):
            created["trust_store"] = trust_store
            created["skip_verification"] = skip_verification
            return transport

        monkeypatch.setattr(cli, "configure_transport", configure)
        return transport

    install.created = created
    return install


def test_zero_urls_exits_cleanly(workdir: Path) -> None:
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 0, result.output
    msgs = [e["msg"] for e in _json_lines(result.output)]
    assert "trust_store.built" in msgs
    assert "accessing url" not in msgs


def test_missing_ca_aborts_before_fetching(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fake_transport) -> None:
    monkeypatch.chdir(tmp_path)
    transport = fake_transport({A: FakeResponse(200, b"ok")})
    result = runner.invoke(cli.app, [A])
    assert result.exit_code == 1
    assert "unable to build trust store" in result.output
    assert transport.calls == []


def test_two_successes_quiet(workdir: Path, fake_transport) -> None:
    transport = fake_transport({A: FakeResponse(200, b"alpha"), B: FakeResponse(200, b"bravo!")})
    result = runner.invoke(cli.app, ["-q", A, B])
    assert result.exit_code == 0, result.output

    bodies = [e for e in _json_lines(result.output) if e["msg"] == "request body bytes"]
    assert sorted((e["url"], e["length"]) for e in bodies) == [(A, 5), (B, 6)]
    assert not any(e["msg"] == "request body" for e in _json_lines(result.output))
    assert transport.closed == 1


def test_default_mode_logs_body(workdir: Path, fake_transport) -> None:
    fake_transport({A: FakeResponse(200, b"alpha")})
    result = runner.invoke(cli.app, [A])
    assert result.exit_code == 0, result.output
    (entry,) = [e for e in _json_lines(result.output) if e["msg"] == "request body"]
    assert entry["body"] == "alpha"


def test_insecure_flag_reaches_transport(workdir: Path, fake_transport) -> None:
    fake_transport({A: FakeResponse(200, b"ok")})
    assert runner.invoke(cli.app, ["-insecure", A]).exit_code == 0
    assert fake_transport.created["skip_verification"] is True

    assert runner.invoke(cli.app, [A]).exit_code == 0
    assert fake_transport.created["skip_verification"] is False


def test_first_failure_is_fatal(workdir: Path, fake_transport) -> None:
    transport = fake_transport({A: ConnectionError("refused"), B: FakeResponse(200, b"ok")})
    result = runner.invoke(cli.app, ["-q", A, B])
    assert result.exit_code == 1

    fatal = [e for e in _json_lines(result.output) if e["level"] == "CRITICAL"]
    assert len(fatal) == 1
    assert fatal[0]["msg"] == "unable to get the url" and fatal[0]["url"] == A
    assert transport.closed == 1


def test_isolate_policy_finishes_siblings(workdir: Path, fake_transport, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "FAILURE_POLICY", FailurePolicy.ISOLATE)
    fake_transport({A: ConnectionError("refused"), B: FakeResponse(200, b"ok")})
    result = runner.invoke(cli.app, ["-q", A, B])
    assert result.exit_code == 1

    entries = _json_lines(result.output)
    assert [e["url"] for e in entries if e["msg"] == "request body bytes"] == [B]
    assert [e["level"] for e in entries if e["msg"] == "unable to get the url"] == ["ERROR"]


def test_settings_coerce_env_strings() -> None:
    s = Settings(FAILURE_POLICY="isolate", MAX_CONCURRENCY="4")
    assert s.FAILURE_POLICY is FailurePolicy.ISOLATE
    assert s.MAX_CONCURRENCY == 4


@pytest.mark.parametrize("overrides", [{"FAILURE_POLICY": "foo"}, {"MAX_CONCURRENCY": -1}])
def test_settings_reject_bad_values(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Settings(**overrides)
