"""
Tests for the process entry point.
"""

import os
from pathlib import Path

import pytest
from fastapi import FastAPI

from app.server import main as entry
from vvce.config import ServerConfig

pytestmark = pytest.mark.unit


@pytest.fixture
def uvicorn_calls(monkeypatch: pytest.MonkeyPatch):
    calls = []
    monkeypatch.setattr(entry.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr(entry, "configure_logging", lambda **kwargs: None)
    return calls


def test_bootstrap_with_defaults_returns_app(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(entry, "configure_logging", lambda **kwargs: None)

    application = entry.bootstrap()

    assert isinstance(application, FastAPI)
    assert application.state.config == ServerConfig()
    assert "GET /health" in application.state.routes


def test_bootstrap_configures_logging_from_config(monkeypatch: pytest.MonkeyPatch):
    seen = {}
    monkeypatch.setattr(entry, "configure_logging", lambda **kwargs: seen.update(kwargs))

    entry.bootstrap(ServerConfig(log_level="DEBUG", log_format="json"))

    assert seen == {"level": "DEBUG", "format": "json", "log_file": None}


def test_main_runs_uvicorn_with_configured_address(uvicorn_calls):
    exit_code = entry.main([])

    assert exit_code == 0
    application, kwargs = uvicorn_calls[0]
    assert isinstance(application, FastAPI)
    assert kwargs == {"host": "0.0.0.0", "port": 8080, "log_config": None}


def test_cli_flags_override_config(uvicorn_calls, tmp_path: Path):
    config_file = tmp_path / "custom.toml"
    config_file.write_text('[server]\nport = 9000\nhost = "10.0.0.5"\n')

    entry.main(["--config", str(config_file), "--port", "9100", "--log-level", "DEBUG"])

    application, kwargs = uvicorn_calls[0]
    assert kwargs["port"] == 9100
    assert kwargs["host"] == "10.0.0.5"
    assert application.state.config.log_level == "DEBUG"


def test_configuration_errors_exit_with_code_2(uvicorn_calls, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("VV_PORT", "99999")

    assert entry.main([]) == entry.EXIT_CONFIG_ERROR == 2
    assert uvicorn_calls == []


def test_missing_config_file_exits_with_code_2(uvicorn_calls, tmp_path: Path):
    assert entry.main(["--config", str(tmp_path / "missing.toml")]) == 2


def test_reload_uses_factory_import_string(uvicorn_calls, monkeypatch: pytest.MonkeyPatch):
    # register the variables so monkeypatch removes what main() exports
    for name in ("VV_HOST", "VV_PORT", "VV_LOG_LEVEL", "VV_CONFIG_FILE"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)

    entry.main(["--reload", "--port", "9200", "--host", "127.0.0.1"])

    target, kwargs = uvicorn_calls[0]
    assert target == "app.server.main:bootstrap"
    assert kwargs["factory"] is True
    assert kwargs["reload"] is True
    assert os.environ["VV_PORT"] == "9200"
    assert os.environ["VV_HOST"] == "127.0.0.1"
    # the reloaded worker resolves the same configuration
    monkeypatch.setattr(entry, "configure_logging", lambda **kwargs: None)
    assert entry.bootstrap().state.config.port == 9200


def test_invalid_log_level_flag_is_rejected():
    with pytest.raises(SystemExit) as excinfo:
        entry.main(["--log-level", "loud"])

    assert excinfo.value.code == 2
