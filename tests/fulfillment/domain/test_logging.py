"""Tests for environment detection and logging configuration."""

import logging

import pytest
from fulfillment.domain import current_env
from fulfillment.utils.logging import get_log_level, setup_stdlib_logging


class TestEnvironment:
    def test_protean_env_wins(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "Staging")
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert current_env() == "staging"

    def test_falls_back_to_environment(self, monkeypatch):
        monkeypatch.delenv("PROTEAN_ENV", raising=False)
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert current_env() == "production"

    def test_defaults_to_development(self, monkeypatch):
        monkeypatch.delenv("PROTEAN_ENV", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        assert current_env() == "development"


class TestLogLevel:
    @pytest.mark.parametrize(
        "env,level",
        [("production", "INFO"), ("staging", "INFO"), ("development", "DEBUG"), ("test", "WARNING")],
    )
    def test_level_per_environment(self, monkeypatch, env, level):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("PROTEAN_ENV", env)
        assert get_log_level() == level

    def test_unknown_environment_logs_info(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("PROTEAN_ENV", "qa")
        assert get_log_level() == "INFO"

    def test_explicit_level_overrides(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert get_log_level() == "ERROR"


class TestStdlibLogging:
    def test_root_logger_gets_one_console_handler(self, monkeypatch):
        root = logging.getLogger()
        saved_level, saved_handlers = root.level, root.handlers[:]
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        try:
            setup_stdlib_logging()

            assert root.level == logging.ERROR
            assert len(root.handlers) == 1
            assert logging.getLogger("asyncio").level == logging.WARNING
        finally:
            root.setLevel(saved_level)
            root.handlers = saved_handlers
