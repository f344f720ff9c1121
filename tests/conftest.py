from __future__ import annotations

import logging

import pytest

from sdisk.config.config_manager import ConfigManager


@pytest.fixture(autouse=True)
def no_user_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_LOCATIONS", [])


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
