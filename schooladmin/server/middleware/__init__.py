"""
Middleware modules for the SchoolAdmin server.

This package contains custom middleware for request/response logging,
request ids and other cross-cutting concerns.
"""

from .logfire_middleware import LogfireMiddleware

__all__ = ["LogfireMiddleware"]
