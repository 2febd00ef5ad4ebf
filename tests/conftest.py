"""Shared test fixtures for the Tardis test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from tardis.config.remote import InMemoryConfCenterClient

TEST_SALT = "ab8Ef3yDg7Kc2Pq9"


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    directory = tmp_path / "config"
    directory.mkdir()
    return directory


@pytest.fixture
def write_configs(config_dir: Path) -> Callable[[dict[str, str]], Path]:
    """Factory fixture to create configuration files in the test config directory.

    Usage:
        def test_something(write_configs):
            write_configs({
                "conf-default.toml": "[cs]\\nproject_name = 'test'",
                "conf-dev.toml": "[cs]\\nlevel_num = 2",
            })
    """

    def _write(files: dict[str, str]) -> Path:
        for filename, content in files.items():
            (config_dir / filename).write_text(content, encoding="utf-8")
        return config_dir

    return _write


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove PROFILE and TARDIS_* variables so the host environment cannot leak in."""
    monkeypatch.delenv("PROFILE", raising=False)
    for key in list(os.environ):
        if key.upper().startswith("TARDIS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_inmemory_conf_center() -> Generator[None, None, None]:
    """Drop documents shared between in-memory configuration center clients."""
    InMemoryConfCenterClient.reset_shared()
    yield
    InMemoryConfCenterClient.reset_shared()


@pytest.fixture
def salt() -> str:
    """A valid 16-byte salt."""
    return TEST_SALT
