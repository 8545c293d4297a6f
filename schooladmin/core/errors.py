"""
Domain errors.

Services raise these instead of ``HTTPException`` so that the same code can be
called from routers, the Excel importer and tests. The server registers a
handler that renders any ``AppError`` as a JSON response with its status code.
"""

from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, message={self.message!r})"


class ValidationError(AppError):
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    """Raised when a record does not exist.

    ``NotFoundError("Student")`` renders as ``"Student not found"``. Pass
    ``message`` to override the text entirely.
    """

    status_code = 404

    def __init__(self, resource: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"{resource} not found")
        self.resource = resource


class ConflictError(AppError):
    status_code = 409
