"""
Database Connection and Session Management.

Re-exports the session dependency and startup hook used by the API layer.
"""

from schooladmin.core.database import async_session_maker, engine, get_session, init_db

__all__ = ["async_session_maker", "engine", "get_session", "init_db"]
