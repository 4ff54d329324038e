"""Pytest configuration and fixtures for quizvoice tests."""

import sys
from collections.abc import Generator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quizvoice import config
from test_helpers import FakeSynthesisClient


@pytest.fixture(autouse=True)
def isolate_config(monkeypatch, tmp_path) -> Generator[None]:
    """Point config loading at a per-test location and drop env overrides."""
    for name in (
        "QUIZVOICE_PROVIDER",
        "QUIZVOICE_VOICE",
        "QUIZVOICE_MODEL",
        "QUIZVOICE_MAX_CONCURRENT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "config" / "config.toml")
    config.reset_config_cache()
    yield
    config.reset_config_cache()


@pytest.fixture
def fake_sleep() -> AsyncMock:
    """Sleep replacement that records requested delays without waiting."""
    return AsyncMock(return_value=None)


@pytest.fixture
def fake_client() -> FakeSynthesisClient:
    return FakeSynthesisClient()
