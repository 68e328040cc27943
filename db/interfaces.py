"""Shared database interface definitions.

Lightweight typing Protocols so managers depend on the query surface they use
instead of the concrete `DatabaseManager`. Tests substitute `unittest.mock.Mock`.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Tuple


class DBExecutor(Protocol):
    """Query surface used by the user, session and summary managers.

    Implemented by `db.database_manager.DatabaseManager`.
    """

    def execute(self, query: str, params: Tuple[object, ...] = ()) -> object:
        """Execute a SQL statement with parameters."""
        ...

    def fetchone(self, query: str, params: Tuple[object, ...] = ()) -> Optional[Dict[str, object]]:
        """Execute a query and return the first row as a dict, or None."""
        ...

    def fetchall(self, query: str, params: Tuple[object, ...] = ()) -> List[Dict[str, object]]:
        """Execute a query and return all rows as dicts."""
        ...
