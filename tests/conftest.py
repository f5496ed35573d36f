"""
Global pytest configuration for the VV Education API server

This file provides shared fixtures and enforces Python version requirements.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add tests directory to sys.path to support imports from test fixtures
_tests_dir = Path(__file__).parent
if str(_tests_dir) not in sys.path:
    sys.path.insert(0, str(_tests_dir))

_MIN_PY_VERSION = (3, 11)


def _verify_python_version() -> str:
    """Return the interpreter version string or exit if <3.11."""
    version_info = sys.version_info
    version_str = ".".join(map(str, version_info[:3]))
    if version_info < _MIN_PY_VERSION:
        pytest.exit(
            f"ERROR: pytest must run on Python 3.11+ (detected {version_str}).",
            returncode=1,
        )
    return version_str


def pytest_report_header(config: pytest.Config) -> str:
    version_str = _verify_python_version()
    return f"Python interpreter verified for pytest: {version_str}"


def pytest_configure(config: pytest.Config) -> None:
    """Register project markers to prevent unknown marker warnings."""
    markers = {
        "unit": "Unit tests that should execute quickly.",
        "integration": "Integration tests hitting multiple components.",
        "slow": "Slow or high-cost tests.",
    }
    for name, description in markers.items():
        config.addinivalue_line("markers", f"{name}: {description}")


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every test from an empty directory with no VV_* variables set."""
    import os

    for name in list(os.environ):
        if name.startswith("VV_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def sample_course():
    """A fresh copy of the built-in sample course document."""
    from vvce.samples import sample_course as _sample_course

    return _sample_course()


@pytest.fixture
def parsed_course(sample_course):
    from vvce.schema import parse_course

    return parse_course(sample_course)


@pytest.fixture
def server_config(tmp_path: Path):
    from vvce.config import ServerConfig

    return ServerConfig(workspace_dir=tmp_path / "workspace")


@pytest.fixture
def client(server_config):
    """TestClient over a fully auto-configured application."""
    from fastapi.testclient import TestClient

    from app.server import create_app

    with TestClient(create_app(server_config)) as test_client:
        yield test_client


@pytest.fixture
def chain_course():
    """Build a linear course ``s0 -> s1 -> ... -> s<length-1>``."""

    def build(length: int) -> dict:
        scenes = []
        for index in range(length):
            scene = {"id": f"s{index}", "nodes": [{"id": "next", "type": "Button"}], "triggers": []}
            if index + 1 < length:
                scene["triggers"].append(
                    {
                        "on": {"event": "click", "target": "next"},
                        "then": [{"action": "gotoScene", "sceneId": f"s{index + 1}"}],
                    }
                )
            scenes.append(scene)
        return {
            "schema": "vvce.dsl.v1",
            "meta": {"id": "long-chain", "version": "1.0.0"},
            "startSceneId": "s0",
            "scenes": scenes,
        }

    return build
