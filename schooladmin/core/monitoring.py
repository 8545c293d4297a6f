"""
Monitoring and Tracing Configuration Module.

This module provides integration with Pydantic Logfire for monitoring and
tracing of the SchoolAdmin server, including:
- API endpoint tracing
- Database operation monitoring
- Audit events (logins, permission changes, imports)
- Error tracking

Logfire is only configured when ``LOGFIRE_ENABLED`` is true and a token is
present. Until then every ``log_*`` helper is a no-op, so the rest of the code
can call them unconditionally.
"""

import logging
from typing import Any, Optional

import logfire
from fastapi import FastAPI

from schooladmin.server.core.config import settings

logger = logging.getLogger(__name__)

_logfire_configured = False


def is_logfire_configured() -> bool:
    """Whether ``initialize_logfire`` managed to configure Logfire."""
    return _logfire_configured


def initialize_logfire(app: FastAPI | None = None) -> None:
    """
    Initialize Pydantic Logfire for monitoring and tracing.

    This function sets up Logfire with automatic instrumentation for:
    - SQLAlchemy database operations
    - FastAPI endpoints

    Args:
        app: FastAPI application instance for FastAPI instrumentation (optional).
             If provided, enables automatic tracing of FastAPI endpoints.
    """
    global _logfire_configured

    config = settings.logfire
    if not config.enabled:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return

    if not config.token:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return

    try:
        logfire.configure(
            token=config.token,
            service_name=config.service_name,
            environment=config.environment,
        )
        _logfire_configured = True

        if config.trace_sqlalchemy:
            try:
                logfire.instrument_sqlalchemy()
                logger.info("Logfire: SQLAlchemy instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument SQLAlchemy: {e}")

        if config.trace_fastapi:
            if app is not None:
                try:
                    logfire.instrument_fastapi(app=app)
                    logger.info("Logfire: FastAPI instrumentation enabled")
                except Exception as e:
                    logger.warning(f"Failed to instrument FastAPI: {e}")
            else:
                logger.debug("FastAPI app instance not provided, skipping FastAPI instrumentation")

        logger.info(
            f"Logfire monitoring initialized: "
            f"environment={config.environment}, "
            f"service={config.service_name}"
        )
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """
    Log an API request with performance metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
    """
    if not _logfire_configured:
        return
    try:
        logfire.info(
            "API request completed",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=duration_ms,
        )
    except Exception:
        logger.debug(f"Could not log API request to Logfire: {method} {path}")


def log_audit_event(action: str, resource: str, status: str, user_email: Optional[str] = None, **context: Any) -> None:
    """
    Forward an audit trail entry to Logfire.

    Args:
        action: Audited action (e.g. LOGIN_SUCCESS, EXCEL_UPLOAD_COMPLETED)
        resource: Resource the action touched
        status: SUCCESS, FAILURE or ERROR
        user_email: Email of the acting user, if known
        **context: Extra attributes attached to the event
    """
    if not _logfire_configured:
        return
    try:
        logfire.info(
            "Audit event",
            action=action,
            resource=resource,
            status=status,
            user_email=user_email,
            **context,
        )
    except Exception:
        logger.debug(f"Could not log audit event to Logfire: {action}")


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    if not _logfire_configured:
        return
    try:
        logfire.error(
            f"{error_type}: {error_message}",
            **(context or {}),
        )
    except Exception:
        logger.debug(f"Could not log error to Logfire: {error_type}")
