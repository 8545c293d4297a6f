"""
Unit tests for server exception handlers.

Tests cover the domain error handler, the global fallback handler and their
registration on the application.
"""

import json
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient

from schooladmin.core.errors import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from schooladmin.server.exception_handlers import setup_exception_handlers
from schooladmin.server.exception_handlers.app_error_handler import app_error_handler
from schooladmin.server.exception_handlers.global_handler import global_exception_handler

GLOBAL_LOGGER = "schooladmin.server.exception_handlers.global_handler.logger"
APP_ERROR_LOGGER = "schooladmin.server.exception_handlers.app_error_handler.logger"


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/students"
    request.query_params = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    request.state = SimpleNamespace()
    return request


def _body(response: JSONResponse) -> dict:
    return json.loads(response.body.decode())


class TestAppErrorHandler:
    """Domain errors keep their status code and message."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc, status_code",
        [
            (ValidationError("Missing grade"), 400),
            (UnauthorizedError("Authentication required"), 401),
            (ForbiddenError("Admin access required"), 403),
            (NotFoundError("Student"), 404),
            (ConflictError("Permission already granted to this user"), 409),
        ],
    )
    async def test_status_and_detail(self, mock_request, exc, status_code):
        with patch(APP_ERROR_LOGGER):
            response = await app_error_handler(mock_request, exc)

        assert response.status_code == status_code
        body = _body(response)
        assert body["detail"] == exc.message
        assert body["error_type"] == type(exc).__name__
        assert "details" not in body

    @pytest.mark.asyncio
    async def test_not_found_message(self, mock_request):
        with patch(APP_ERROR_LOGGER):
            response = await app_error_handler(mock_request, NotFoundError("Student"))
        assert _body(response)["detail"] == "Student not found"

    @pytest.mark.asyncio
    async def test_details_are_included(self, mock_request):
        exc = ValidationError("File size exceeds limit", details={"max_file_size": 10})
        with patch(APP_ERROR_LOGGER):
            response = await app_error_handler(mock_request, exc)
        assert _body(response)["details"] == {"max_file_size": 10}

    @pytest.mark.asyncio
    async def test_uses_request_id_when_present(self, mock_request):
        mock_request.state.request_id = "req-123"
        with patch(APP_ERROR_LOGGER):
            response = await app_error_handler(mock_request, ValidationError("bad"))
        assert _body(response)["error_id"] == "req-123"

    @pytest.mark.asyncio
    async def test_client_errors_log_warnings(self, mock_request):
        with patch(APP_ERROR_LOGGER) as mock_logger:
            await app_error_handler(mock_request, ValidationError("bad"))

        mock_logger.warning.assert_called_once()
        mock_logger.error.assert_not_called()
        assert mock_logger.warning.call_args[1]["extra"]["status_code"] == 400

    @pytest.mark.asyncio
    async def test_server_errors_log_errors(self, mock_request):
        with patch(APP_ERROR_LOGGER) as mock_logger:
            response = await app_error_handler(mock_request, AppError("boom"))

        assert response.status_code == 500
        mock_logger.error.assert_called_once()


class TestGlobalExceptionHandler:
    """Test suite for global exception handler."""

    @pytest.mark.asyncio
    async def test_exception_handler_logs_error(self, mock_request):
        exc = ValueError("Test error")

        with patch(GLOBAL_LOGGER) as mock_logger:
            await global_exception_handler(mock_request, exc)

        mock_logger.error.assert_called_once()
        call_args = mock_logger.error.call_args
        assert "Unhandled exception" in call_args[0][0]
        assert call_args[1]["extra"]["error_type"] == "ValueError"
        assert call_args[1]["exc_info"] is True

    @pytest.mark.asyncio
    async def test_exception_handler_response(self, mock_request):
        with patch(GLOBAL_LOGGER):
            response = await global_exception_handler(mock_request, RuntimeError("Test error"))

        assert isinstance(response, JSONResponse)
        assert response.status_code == 500
        body = _body(response)
        assert body["detail"] == "Internal server error"
        assert body["error_type"] == "RuntimeError"
        assert body["error_id"]

    @pytest.mark.asyncio
    async def test_exception_handler_logs_request_context(self, mock_request):
        mock_request.query_params = {"grade": "י'"}

        with patch(GLOBAL_LOGGER) as mock_logger:
            await global_exception_handler(mock_request, KeyError("missing"))

        extra = mock_logger.error.call_args[1]["extra"]
        assert extra["method"] == "GET"
        assert extra["path"] == "/api/v1/students"
        assert extra["client"] == "127.0.0.1"
        assert extra["query_params"] == {"grade": "י'"}
        assert "traceback" in extra

    @pytest.mark.asyncio
    async def test_exception_handler_handles_missing_client(self, mock_request):
        mock_request.client = None

        with patch(GLOBAL_LOGGER) as mock_logger:
            response = await global_exception_handler(mock_request, RuntimeError("Test error"))

        assert response.status_code == 500
        assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"

    @pytest.mark.asyncio
    async def test_exception_handler_error_id_is_unique(self, mock_request):
        with patch(GLOBAL_LOGGER):
            first = await global_exception_handler(mock_request, RuntimeError("one"))
            second = await global_exception_handler(mock_request, RuntimeError("two"))

        assert _body(first)["error_id"] != _body(second)["error_id"]

    @pytest.mark.asyncio
    async def test_exception_handler_reports_to_monitoring(self, mock_request):
        with (
            patch(GLOBAL_LOGGER),
            patch("schooladmin.server.exception_handlers.global_handler.log_error") as mock_log_error,
        ):
            await global_exception_handler(mock_request, TypeError("Test error"))

        mock_log_error.assert_called_once()
        assert mock_log_error.call_args[0][:2] == ("TypeError", "Test error")


class TestSetupExceptionHandlers:
    """Registration on the application."""

    def test_setup_exception_handlers_registers_handlers(self):
        app = FastAPI()
        setup_exception_handlers(app)

        assert app.exception_handlers[AppError] is app_error_handler
        assert app.exception_handlers[Exception] is global_exception_handler

    def test_setup_exception_handlers_logs_debug_message(self):
        with patch("schooladmin.server.exception_handlers.logger") as mock_logger:
            setup_exception_handlers(FastAPI())
        mock_logger.debug.assert_called_once_with("Exception handlers registered successfully")

    @pytest.mark.asyncio
    async def test_domain_error_from_route(self):
        app = FastAPI()
        setup_exception_handlers(app)

        @app.get("/rooms/{room_id}")
        async def get_room(room_id: int):
            raise NotFoundError("Room")

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/rooms/3")

        assert response.status_code == 404
        assert response.json()["detail"] == "Room not found"
        assert response.json()["error_type"] == "NotFoundError"
