"""Tests for settings-driven logging configuration."""

import logging

import structlog

from shared.config import Settings
from shared.logging import add_context, build_handlers, clear_context, get_log_level


class TestLogLevel:
    def test_level_follows_environment(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert get_log_level(Settings(_env_file=None, ENVIRONMENT="production")) == "INFO"
        assert get_log_level(Settings(_env_file=None, ENVIRONMENT="development")) == "DEBUG"
        assert get_log_level(Settings(_env_file=None, ENVIRONMENT="test")) == "WARNING"

    def test_unknown_environment_defaults_to_info(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert get_log_level(Settings(_env_file=None, ENVIRONMENT="qa")) == "INFO"

    def test_explicit_level_wins(self):
        settings = Settings(_env_file=None, ENVIRONMENT="production", LOG_LEVEL="debug")
        assert get_log_level(settings) == "DEBUG"


class TestHandlers:
    def test_console_only_without_log_dir(self):
        handlers = build_handlers(Settings(_env_file=None, LOG_DIR=None))
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)

    def test_log_dir_adds_rotating_files(self, tmp_path):
        handlers = build_handlers(Settings(_env_file=None, LOG_DIR=str(tmp_path / "logs")))
        try:
            assert len(handlers) == 3
            assert (tmp_path / "logs").is_dir()
            assert handlers[-1].level == logging.ERROR
        finally:
            for handler in handlers:
                handler.close()


class TestContext:
    def test_none_values_are_not_bound(self):
        clear_context()
        add_context(tenant_id="tenant-1", request_id=None)
        assert structlog.contextvars.get_contextvars() == {"tenant_id": "tenant-1"}
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
