"""Tests for environment settings and logging setup."""

import logging

from hex_service.config import DEFAULT_SESSION_MAX, ServiceSettings
from hex_service.logging_config import setup_logging


class TestServiceSettings:

    def test_defaults(self, monkeypatch) -> None:
        for name in (
            "HEX_AI_LOG_LEVEL",
            "HEX_AI_SESSION_TTL_SEC",
            "HEX_AI_SESSION_MAX",
            "CORS_ORIGINS",
            "HEX_AI_SERVICE_PORT",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = ServiceSettings.from_env()
        assert settings == ServiceSettings()
        assert settings.cors_origins == ["*"]

    def test_reads_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("HEX_AI_LOG_LEVEL", "debug")
        monkeypatch.setenv("HEX_AI_SESSION_TTL_SEC", "60")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
        monkeypatch.setenv("HEX_AI_SERVICE_PORT", "9000")
        settings = ServiceSettings.from_env()
        assert settings.log_level == "DEBUG"
        assert settings.session_ttl_sec == 60
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
        assert settings.port == 9000

    def test_bad_values_fall_back(self, monkeypatch) -> None:
        monkeypatch.setenv("HEX_AI_SESSION_MAX", "lots")
        monkeypatch.setenv("HEX_AI_SESSION_TTL_SEC", "0")
        settings = ServiceSettings.from_env()
        assert settings.session_max == DEFAULT_SESSION_MAX
        assert settings.session_ttl_sec == 1


class TestLoggingSetup:

    def test_setup_is_idempotent(self, tmp_path) -> None:
        name = "hex_service_test_logging"
        logger = setup_logging(name, level="debug", log_dir=tmp_path)
        try:
            assert logger.level == logging.DEBUG
            assert len(logger.handlers) == 2
            assert (tmp_path / f"{name}.log").exists()

            again = setup_logging(name, level="WARNING", log_dir=tmp_path)
            assert again is logger
            assert len(logger.handlers) == 2
            assert logger.level == logging.WARNING
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    def test_unknown_level_name(self) -> None:
        name = "hex_service_test_level"
        logger = setup_logging(name, level="chatty")
        try:
            assert logger.level == logging.INFO
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
