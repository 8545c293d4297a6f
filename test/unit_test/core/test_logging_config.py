"""Unit tests for logging configuration module.

Tests verify log levels, formats, the optional file handler and the
per-module levels applied by ``setup_logging``.
"""

import logging
from unittest.mock import patch

import pytest

from schooladmin.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)

MODULE = "schooladmin.core.logging_config"


def _console_handler():
    return next(h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler)


def _file_handlers():
    return [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    for handler in _file_handlers():
        handler.close()
    setup_logging(enable_file=False)


class TestSetupLoggingLevels:
    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("WARNING", logging.WARNING),
            ("CRITICAL", logging.CRITICAL),
            ("info", logging.INFO),
        ],
    )
    def test_console_level(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)
        assert _console_handler().level == expected_level

    def test_root_logger_captures_everything(self):
        setup_logging(log_level="ERROR", enable_file=False)
        assert logging.getLogger().level == logging.DEBUG


class TestSetupLoggingFormats:
    @pytest.mark.parametrize(
        "log_format,expected_format",
        [
            ("simple", SIMPLE_FORMAT),
            ("detailed", DETAILED_FORMAT),
            ("json", JSON_FORMAT),
            ("unknown", DETAILED_FORMAT),
        ],
    )
    def test_format(self, log_format, expected_format):
        setup_logging(log_format=log_format, enable_file=False)

        formatter = _console_handler().formatter
        assert formatter._fmt == expected_format
        assert formatter.datefmt == "%Y-%m-%d %H:%M:%S"


class TestSetupLoggingFileHandling:
    def test_file_handler_when_enabled(self, tmp_path):
        with patch(f"{MODULE}.LOG_FILE_DIR", str(tmp_path)), patch(f"{MODULE}.ENABLE_FILE_LOGGING", True):
            setup_logging(log_level="ERROR", enable_file=True)

        (file_handler,) = _file_handlers()
        assert file_handler.level == logging.DEBUG
        assert file_handler.baseFilename == str(tmp_path / "schooladmin.log")

    def test_no_file_handler_when_setting_is_off(self, tmp_path):
        with patch(f"{MODULE}.LOG_FILE_DIR", str(tmp_path)), patch(f"{MODULE}.ENABLE_FILE_LOGGING", False):
            setup_logging(enable_file=True)
        assert _file_handlers() == []

    def test_no_file_handler_when_disabled_by_caller(self):
        with patch(f"{MODULE}.ENABLE_FILE_LOGGING", True):
            setup_logging(enable_file=False)
        assert _file_handlers() == []


class TestSetupLoggingHandlerManagement:
    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)
        assert len(logging.getLogger().handlers) == 1


class TestModuleLevels:
    @pytest.mark.parametrize(
        "module_name,expected_level",
        [
            ("schooladmin.core", logging.INFO),
            ("schooladmin.core.permissions", logging.DEBUG),
            ("schooladmin.server.api", logging.DEBUG),
            ("schooladmin.server.services", logging.DEBUG),
            ("sqlalchemy.engine", logging.WARNING),
            ("openpyxl", logging.WARNING),
        ],
    )
    def test_module_level(self, module_name, expected_level):
        setup_logging(enable_file=False)
        assert logging.getLogger(module_name).level == expected_level

    def test_every_configured_module_is_applied(self):
        setup_logging(enable_file=False)
        for module_name, level in MODULE_LOG_LEVELS.items():
            assert logging.getLevelName(logging.getLogger(module_name).level) == level

    def test_child_logger_inherits_module_level(self):
        setup_logging(enable_file=False)
        assert get_logger("schooladmin.server.api.v1.students").getEffectiveLevel() == logging.DEBUG


class TestGetLogger:
    def test_returns_named_logger(self):
        logger = get_logger("schooladmin.server.services.students")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "schooladmin.server.services.students"
        assert get_logger("schooladmin.server.services.students") is logger
