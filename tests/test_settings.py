"""Tests for settings and logging configuration."""

import pytest
import structlog
from pydantic import ValidationError

from sheetflow.config.settings import Environment, LogLevel, Settings
from sheetflow.observability.log_config import configure_logging


class TestSettings:
    def test_defaults(self, monkeypatch) -> None:
        for name in ("CLOUD_API_BASE_URL", "HTTP_TIMEOUT_S", "LOG_LEVEL", "ENVIRONMENT"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.CLOUD_API_BASE_URL == "http://localhost:5678/rest"
        assert settings.HTTP_TIMEOUT_S == 30.0
        assert settings.LOG_LEVEL == LogLevel.INFO
        assert settings.ENVIRONMENT == Environment.DEV
        assert settings.is_production is False

    def test_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "prod")
        monkeypatch.setenv("HTTP_TIMEOUT_S", "5")
        settings = Settings(_env_file=None)
        assert settings.is_production is True
        assert settings.HTTP_TIMEOUT_S == 5.0

    def test_timeout_must_be_positive(self, monkeypatch) -> None:
        monkeypatch.setenv("HTTP_TIMEOUT_S", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestConfigureLogging:
    def test_json_lines_outside_dev(self) -> None:
        configure_logging(Settings(_env_file=None, ENVIRONMENT="prod", LOG_LEVEL="WARNING"))
        config = structlog.get_config()
        assert isinstance(config["processors"][-1], structlog.processors.JSONRenderer)
        assert config["cache_logger_on_first_use"] is True

    def test_console_in_dev(self) -> None:
        configure_logging(Settings(_env_file=None, ENVIRONMENT="dev"))
        config = structlog.get_config()
        assert isinstance(config["processors"][-1], structlog.dev.ConsoleRenderer)
        assert config["cache_logger_on_first_use"] is False
