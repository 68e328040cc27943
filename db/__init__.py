"""
Database package for the typing dashboard.
This package contains the Postgres connection manager and its exception types.
"""
from .database_manager import DatabaseManager  # noqa: F401
from .exceptions import DatabaseError  # noqa: F401
