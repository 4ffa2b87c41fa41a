"""Tests for mergers/core/logging_config.py - Unified logging configuration."""

import importlib
import logging

from mergers.core.logging_config import (
    COMPACT_FORMAT,
    DEFAULT_FORMAT,
    DETAILED_FORMAT,
    STRUCTURED_FORMAT,
    configure_third_party_loggers,
    setup_logging,
)


class TestSetupLogging:
    """Test setup_logging function."""

    def test_returns_logger(self):
        logger = setup_logging("mergers_test_logger_1")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "mergers_test_logger_1"

    def test_logger_level_default(self):
        """Default level should be INFO."""
        logger = setup_logging("mergers_test_logger_2")
        assert logger.level == logging.INFO

    def test_logger_level_string(self):
        """Level can be specified as string, in any case."""
        logger = setup_logging("mergers_test_logger_3", level="warning")
        assert logger.level == logging.WARNING

    def test_unknown_level_string_falls_back_to_info(self):
        logger = setup_logging("mergers_test_logger_4", level="CHATTY")
        assert logger.level == logging.INFO

    def test_idempotent_logger_creation(self):
        """Calling setup_logging twice should not add duplicate handlers."""
        logger1 = setup_logging("mergers_test_logger_5")
        handler_count = len(logger1.handlers)
        logger2 = setup_logging("mergers_test_logger_5")
        assert logger1 is logger2
        assert len(logger2.handlers) == handler_count

    def test_console_handler_disabled(self):
        logger = setup_logging("mergers_test_logger_6", console=False)
        assert logger.handlers == []

    def test_file_handler_with_log_file(self, tmp_path):
        log_file = tmp_path / "nested" / "engine.log"
        logger = setup_logging(
            "mergers_test_logger_7", log_file=log_file, console=False
        )
        logger.info("Player 0 plays 1-A")
        for handler in logger.handlers:
            handler.flush()
        assert "Player 0 plays 1-A" in log_file.read_text()

    def test_file_handler_not_duplicated(self, tmp_path):
        log_file = tmp_path / "engine.log"
        setup_logging("mergers_test_logger_8", log_file=log_file, console=False)
        logger = setup_logging(
            "mergers_test_logger_8", log_file=log_file, console=False
        )
        file_handlers = [
            h for h in logger.handlers if isinstance(h, logging.FileHandler)
        ]
        assert len(file_handlers) == 1

    def test_file_handler_with_log_dir(self, tmp_path):
        setup_logging("mergers_test_logger_9", log_dir=tmp_path, console=False)
        assert (tmp_path / "mergers_test_logger_9.log").exists()

    def test_propagate_default_false(self):
        logger = setup_logging("mergers_test_logger_10")
        assert logger.propagate is False


class TestFormatStyles:
    def test_structured_format_is_applied(self):
        logger = setup_logging("mergers_test_format_1", format_style="structured")
        assert logger.handlers[0].formatter._fmt == STRUCTURED_FORMAT

    def test_unknown_format_uses_default(self):
        logger = setup_logging("mergers_test_format_2", format_style="nonexistent")
        assert logger.handlers[0].formatter._fmt == DEFAULT_FORMAT

    def test_format_is_read_from_the_environment(self, monkeypatch):
        from mergers import config

        monkeypatch.setenv("MERGERS_LOG_FORMAT", "Compact")
        try:
            importlib.reload(config)
            assert config.LOG_FORMAT == "compact"
        finally:
            monkeypatch.delenv("MERGERS_LOG_FORMAT")
            importlib.reload(config)

    def test_service_logger_uses_the_configured_format(self):
        from mergers import config
        import mergers.main  # noqa: F401

        expected = {
            "compact": COMPACT_FORMAT,
            "detailed": DETAILED_FORMAT,
            "structured": STRUCTURED_FORMAT,
        }.get(config.LOG_FORMAT, DEFAULT_FORMAT)
        handler = next(
            h
            for h in logging.getLogger("mergers").handlers
            if type(h) is logging.StreamHandler
        )
        assert handler.formatter._fmt == expected


class TestConfigureThirdPartyLoggers:
    def test_quiets_noisy_packages(self):
        configure_third_party_loggers(quiet=True)
        assert logging.getLogger("httpx").level >= logging.WARNING

    def test_verbose_packages_not_quieted(self):
        urllib3_logger = logging.getLogger("urllib3")
        urllib3_logger.setLevel(logging.INFO)
        configure_third_party_loggers(quiet=True, verbose_packages=["urllib3"])
        assert urllib3_logger.level == logging.INFO

    def test_not_quiet_leaves_levels_alone(self):
        asyncio_logger = logging.getLogger("asyncio")
        asyncio_logger.setLevel(logging.DEBUG)
        configure_third_party_loggers(quiet=False)
        assert asyncio_logger.level == logging.DEBUG


class TestFormatConstants:
    def test_default_format_has_required_fields(self):
        for field in ("%(asctime)s", "%(name)s", "%(levelname)s", "%(message)s"):
            assert field in DEFAULT_FORMAT

    def test_compact_format_is_shorter(self):
        assert len(COMPACT_FORMAT) < len(DEFAULT_FORMAT)

    def test_detailed_format_has_file_info(self):
        assert "%(filename)s" in DETAILED_FORMAT
        assert "%(lineno)d" in DETAILED_FORMAT
