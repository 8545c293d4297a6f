"""
Handler for domain errors.

Services raise ``AppError`` subclasses; this handler turns them into JSON
responses carrying the error's status code and message.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from schooladmin.core.errors import AppError
from schooladmin.core.logging_config import get_logger

from .global_handler import get_error_id

logger = get_logger(__name__)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Render a domain error.

    Args:
        request: The HTTP request that raised the error
        exc: The domain error

    Returns:
        JSONResponse with ``detail``, ``error_id``, ``error_type`` and, when
        present, ``details``
    """
    error_id = get_error_id(request)
    level = "error" if exc.status_code >= 500 else "warning"
    getattr(logger, level)(
        f"{type(exc).__name__} [{error_id}] in {request.method} {request.url.path}: {exc.message}",
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": exc.status_code,
            "error_type": type(exc).__name__,
        },
    )

    content = {
        "detail": exc.message,
        "error_id": error_id,
        "error_type": type(exc).__name__,
    }
    if exc.details is not None:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)
