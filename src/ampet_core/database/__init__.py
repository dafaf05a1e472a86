"""
Database connection and session management utilities.
"""

from .connection import (
    DatabaseConfig,
    check_connection,
    close_engine,
    create_engine,
    get_database_url,
    get_database_url_from_env,
)
from .session import SessionManager

__all__ = [
    "DatabaseConfig",
    "create_engine",
    "get_database_url",
    "get_database_url_from_env",
    "check_connection",
    "close_engine",
    "SessionManager",
]
