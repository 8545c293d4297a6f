"""
Unit tests for Logfire middleware.

This test suite covers:
- Request/response processing
- Request ids and header injection
- Slow request detection
- Error handling and exception tracking
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient
from starlette.responses import Response

from schooladmin.server.middleware.logfire_middleware import REQUEST_ID_HEADER, LogfireMiddleware

MODULE = "schooladmin.server.middleware.logfire_middleware"


def _request(method: str = "GET", path: str = "/api/v1/students", headers=None):
    request = Mock(spec=Request)
    request.method = method
    request.url.path = path
    request.headers = headers or {}
    request.state = SimpleNamespace()
    return request


class TestLogfireMiddlewareDispatch:
    """Test LogfireMiddleware.dispatch method."""

    @pytest.mark.asyncio
    async def test_middleware_processes_successful_request(self):
        async def call_next(request):
            return Response(content="ok", status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MODULE}.log_api_request") as mock_log:
            response = await middleware.dispatch(_request(), call_next)

        assert response.status_code == 200
        mock_log.assert_called_once()
        call_args = mock_log.call_args
        assert call_args[1]["method"] == "GET"
        assert call_args[1]["path"] == "/api/v1/students"
        assert call_args[1]["status_code"] == 200
        assert call_args[1]["duration_ms"] >= 0

    @pytest.mark.asyncio
    async def test_middleware_adds_headers(self):
        async def call_next(request):
            return Response(content="ok", status_code=201)

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MODULE}.log_api_request"):
            response = await middleware.dispatch(_request("POST"), call_next)

        assert float(response.headers["X-Process-Time"]) >= 0
        assert len(response.headers[REQUEST_ID_HEADER]) == 32

    @pytest.mark.asyncio
    async def test_middleware_keeps_client_request_id(self):
        request = _request(headers={REQUEST_ID_HEADER: "abc-123"})

        async def call_next(request):
            return Response(content="ok")

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MODULE}.log_api_request"):
            response = await middleware.dispatch(request, call_next)

        assert response.headers[REQUEST_ID_HEADER] == "abc-123"
        assert request.state.request_id == "abc-123"

    @pytest.mark.asyncio
    async def test_middleware_stores_request_context(self):
        request = _request("DELETE", "/api/v1/rooms/3")

        async def call_next(req):
            assert req.state.method == "DELETE"
            assert req.state.path == "/api/v1/rooms/3"
            assert req.state.start_time > 0
            return Response(content="ok")

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MODULE}.log_api_request"):
            await middleware.dispatch(request, call_next)

    @pytest.mark.asyncio
    async def test_middleware_detects_slow_requests(self):
        async def call_next(request):
            return Response(content="ok")

        middleware = LogfireMiddleware(app=AsyncMock())

        with (
            patch(f"{MODULE}.log_api_request"),
            patch(f"{MODULE}.logger") as mock_logger,
            patch(f"{MODULE}.time.time", side_effect=[100.0, 102.5]),
        ):
            await middleware.dispatch(_request(), call_next)

        mock_logger.warning.assert_called_once()
        assert "Slow API request" in mock_logger.warning.call_args[0][0]
        assert mock_logger.warning.call_args[1]["extra"]["duration_ms"] == 2500.0

    @pytest.mark.asyncio
    async def test_middleware_handles_request_exception(self):
        async def call_next(request):
            raise RuntimeError("database is gone")

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MODULE}.log_api_request") as mock_log, patch(f"{MODULE}.logger") as mock_logger:
            with pytest.raises(RuntimeError):
                await middleware.dispatch(_request(), call_next)

        assert mock_log.call_args[1]["status_code"] == 500
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[1]["extra"]["error"] == "database is gone"


class TestLogfireMiddlewareIntegration:
    """The middleware mounted on an application."""

    @pytest.mark.asyncio
    async def test_request_id_reaches_the_route(self):
        app = FastAPI()
        app.add_middleware(LogfireMiddleware)

        @app.get("/ping")
        async def ping(request: Request):
            return {"request_id": request.state.request_id}

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/ping", headers={REQUEST_ID_HEADER: "trace-1"})

        assert response.json() == {"request_id": "trace-1"}
        assert response.headers[REQUEST_ID_HEADER] == "trace-1"
