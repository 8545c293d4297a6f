"""
Unit tests for the Logfire monitoring module.

This test suite covers:
- Logfire initialization with various configurations
- Instrumentation flags
- The log helpers, which are no-ops until Logfire is configured
- Error handling and graceful degradation
"""

from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI

import schooladmin.core.monitoring as monitoring
from schooladmin.server.core.config import LogfireConfig

MODULE = "schooladmin.core.monitoring"


@pytest.fixture(autouse=True)
def reset_state(monkeypatch):
    monkeypatch.setattr(monitoring, "_logfire_configured", False)


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(monitoring, "_logfire_configured", True)


def _settings(**overrides):
    values = {"enabled": True, "token": "test-token", "environment": "test"}
    values.update(overrides)
    return Mock(logfire=LogfireConfig(**values))


class TestInitializeLogfire:
    def test_disabled(self):
        with (
            patch(f"{MODULE}.settings", _settings(enabled=False)),
            patch(f"{MODULE}.logfire") as mock_logfire,
            patch(f"{MODULE}.logger") as mock_logger,
        ):
            monitoring.initialize_logfire()

        mock_logfire.configure.assert_not_called()
        assert "disabled" in mock_logger.info.call_args[0][0]
        assert not monitoring.is_logfire_configured()

    def test_missing_token(self):
        with (
            patch(f"{MODULE}.settings", _settings(token=None)),
            patch(f"{MODULE}.logfire") as mock_logfire,
            patch(f"{MODULE}.logger") as mock_logger,
        ):
            monitoring.initialize_logfire()

        mock_logfire.configure.assert_not_called()
        assert "LOGFIRE_TOKEN" in mock_logger.warning.call_args[0][0]

    def test_configures_and_instruments(self):
        app = FastAPI()
        with patch(f"{MODULE}.settings", _settings()), patch(f"{MODULE}.logfire") as mock_logfire:
            monitoring.initialize_logfire(app)

        mock_logfire.configure.assert_called_once_with(
            token="test-token", service_name="schooladmin-server", environment="test"
        )
        mock_logfire.instrument_sqlalchemy.assert_called_once()
        mock_logfire.instrument_fastapi.assert_called_once_with(app=app)
        assert monitoring.is_logfire_configured()

    def test_instrumentation_flags(self):
        with (
            patch(f"{MODULE}.settings", _settings(trace_sqlalchemy=False, trace_fastapi=False)),
            patch(f"{MODULE}.logfire") as mock_logfire,
        ):
            monitoring.initialize_logfire(FastAPI())

        mock_logfire.instrument_sqlalchemy.assert_not_called()
        mock_logfire.instrument_fastapi.assert_not_called()

    def test_skips_fastapi_without_app(self):
        with patch(f"{MODULE}.settings", _settings()), patch(f"{MODULE}.logfire") as mock_logfire:
            monitoring.initialize_logfire()
        mock_logfire.instrument_fastapi.assert_not_called()

    def test_instrumentation_failure_is_tolerated(self):
        with (
            patch(f"{MODULE}.settings", _settings()),
            patch(f"{MODULE}.logfire") as mock_logfire,
            patch(f"{MODULE}.logger") as mock_logger,
        ):
            mock_logfire.instrument_sqlalchemy.side_effect = RuntimeError("no engine")
            monitoring.initialize_logfire()

        assert monitoring.is_logfire_configured()
        assert "Failed to instrument SQLAlchemy" in mock_logger.warning.call_args[0][0]

    def test_configure_failure_is_logged(self):
        with (
            patch(f"{MODULE}.settings", _settings()),
            patch(f"{MODULE}.logfire") as mock_logfire,
            patch(f"{MODULE}.logger") as mock_logger,
        ):
            mock_logfire.configure.side_effect = RuntimeError("bad token")
            monitoring.initialize_logfire()

        assert not monitoring.is_logfire_configured()
        assert "bad token" in mock_logger.error.call_args[0][0]


class TestLogHelpersWhenUnconfigured:
    def test_helpers_do_nothing(self):
        with patch(f"{MODULE}.logfire") as mock_logfire:
            monitoring.log_api_request("GET", "/students", 200, 1.0)
            monitoring.log_audit_event("LOGIN_SUCCESS", "auth", "SUCCESS")
            monitoring.log_error("ValueError", "boom")

        mock_logfire.info.assert_not_called()
        mock_logfire.error.assert_not_called()


class TestLogApiRequest:
    def test_sends_metrics(self, configured):
        with patch(f"{MODULE}.logfire") as mock_logfire:
            monitoring.log_api_request("POST", "/students/upload", 201, 12.5)

        mock_logfire.info.assert_called_once_with(
            "API request completed", method="POST", path="/students/upload", status_code=201, duration_ms=12.5
        )

    def test_failure_is_swallowed(self, configured):
        with patch(f"{MODULE}.logfire") as mock_logfire:
            mock_logfire.info.side_effect = RuntimeError("network")
            monitoring.log_api_request("GET", "/students", 200, 1.0)


class TestLogAuditEvent:
    def test_sends_event_with_context(self, configured):
        with patch(f"{MODULE}.logfire") as mock_logfire:
            monitoring.log_audit_event(
                "EXCEL_UPLOAD_COMPLETED", "students", "SUCCESS", user_email="admin@school.test", created=3
            )

        kwargs = mock_logfire.info.call_args[1]
        assert kwargs["action"] == "EXCEL_UPLOAD_COMPLETED"
        assert kwargs["user_email"] == "admin@school.test"
        assert kwargs["created"] == 3


class TestLogError:
    def test_sends_error(self, configured):
        with patch(f"{MODULE}.logfire") as mock_logfire:
            monitoring.log_error("ValueError", "boom", {"path": "/students"})

        mock_logfire.error.assert_called_once_with("ValueError: boom", path="/students")

    def test_without_context(self, configured):
        with patch(f"{MODULE}.logfire") as mock_logfire:
            monitoring.log_error("KeyError", "missing")
        mock_logfire.error.assert_called_once_with("KeyError: missing")
