"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from pollwatch.config import reset_config
from pollwatch.logging import reset_logging

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch: pytest.MonkeyPatch):
    """Keep environment overrides and global config/logging out of tests."""
    for name in ("POLLWATCH_LOG", "POLLWATCH_INTERVAL", "POLLWATCH_FOLLOW_SYMLINK"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()
    reset_logging()
