"""Shared pytest fixtures."""

import pytest

from common.config import reset_config


@pytest.fixture(autouse=True)
def _reset_process_config(monkeypatch):
    """Every test starts from built-in defaults, not a config left by an earlier CLI run."""
    monkeypatch.delenv("WGR_CONFIG", raising=False)
    reset_config()
    yield
    reset_config()
