"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from devbootstrap.adapters.mock import MockAdapter
from devbootstrap.adapters.registry import AdapterRegistry


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A throwaway HOME; the process environment points at it too."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.delenv("ZDOTDIR", raising=False)
    monkeypatch.chdir(tmp_path)
    return home_dir


@pytest.fixture
def environ(home: Path) -> dict[str, str]:
    """A minimal environment with no tools on PATH."""
    return {"HOME": str(home), "PATH": str(home / "no-bin")}


@pytest.fixture
def mock() -> MockAdapter:
    return MockAdapter()


@pytest.fixture
def mock_registry(mock: MockAdapter) -> AdapterRegistry:
    """Registry that sends every action to ``mock``."""
    registry = AdapterRegistry()
    registry.set_mock_mode(True, mock)
    return registry
