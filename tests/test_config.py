import logging

import pytest

import trip_assistant.config as config
from trip_assistant.utils.logger import refresh_level


@pytest.fixture
def reload_config(monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)
    yield monkeypatch
    monkeypatch.undo()
    config.load_env()
    refresh_level()


@pytest.mark.parametrize("raw, level", [("VERBOSE", "INFO"), ("warning", "WARNING"), (" error ", "ERROR"), ("", "INFO")])
def test_log_level_falls_back_to_info(reload_config, raw, level):
    reload_config.setenv("LOG_LEVEL", raw)
    config.load_env()
    assert config.LOG_LEVEL == level

    refresh_level()
    assert logging.getLogger("trip_assistant").level == getattr(logging, level)


def test_debug_forces_debug_level(reload_config):
    reload_config.setenv("DEBUG", "true")
    reload_config.setenv("LOG_LEVEL", "ERROR")
    config.load_env()
    assert config.DEBUG is True
    assert config.LOG_LEVEL == "DEBUG"
