"""
Tests for the dictConfig mapping built by the logging helpers.
"""

import pytest

from solar_atlas.core import logging_config
from solar_atlas.core.logging_config import QUIET_LOGGERS, build_logging_config


class TestBuildLoggingConfig:
    def test_format_and_single_console_handler(self):
        config = build_logging_config("INFO")
        assert config["root"]["handlers"] == ["console"]
        assert config["formatters"]["standard"]["format"] == "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
        assert config["disable_existing_loggers"] is False

    def test_level_is_normalized(self):
        config = build_logging_config("debug")
        assert config["root"]["level"] == "DEBUG"
        assert config["loggers"]["solar_atlas"]["level"] == "DEBUG"

    @pytest.mark.parametrize("name", QUIET_LOGGERS)
    def test_third_party_loggers_quiet_at_info(self, name):
        assert build_logging_config("INFO")["loggers"][name]["level"] == "WARNING"

    def test_third_party_loggers_follow_debug(self):
        loggers = build_logging_config("DEBUG")["loggers"]
        assert all(loggers[name]["level"] == "DEBUG" for name in QUIET_LOGGERS)

    def test_import_warnings_survive_error_level(self):
        config = build_logging_config("ERROR")
        assert config["loggers"]["solar_atlas"]["level"] == "ERROR"
        assert config["loggers"]["solar_atlas.domain.imports"]["level"] == "WARNING"
        assert config["handlers"]["console"]["level"] == "WARNING"
        assert config["loggers"]["urllib3"]["level"] == "ERROR"

    def test_defaults_to_settings_level(self, monkeypatch):
        monkeypatch.setattr(logging_config.settings, "log_level", "warning")
        assert build_logging_config()["root"]["level"] == "WARNING"


def test_configure_logging_runs_once(monkeypatch):
    calls = []
    monkeypatch.setattr(logging_config, "_is_configured", False)
    monkeypatch.setattr(logging_config, "dictConfig", calls.append)

    logging_config.configure_logging("INFO")
    logging_config.configure_logging("DEBUG")

    assert len(calls) == 1
    assert calls[0]["root"]["level"] == "INFO"
