"""Central database manager for project-wide use.

Provides connection, query, and schema management with specific exception handling
for the Postgres store that holds user profiles, typing sessions, per-day session
summaries and user stats.

All managers receive this class through dependency injection.
"""

import logging
import re
import traceback
from typing import (
    Dict,
    List,
    NoReturn,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Type,
    cast,
)

import psycopg2

from helpers.config import DatabaseConfig
from helpers.debug_util import DebugUtil

from .exceptions import (
    ConstraintError,
    DatabaseError,
    DatabaseTypeError,
    DBConnectionError,
    ForeignKeyError,
    IntegrityError,
    SchemaError,
    TableNotFoundError,
)

logger = logging.getLogger(__name__)


class CursorProtocol(Protocol):
    """Minimal DB-API cursor protocol used by DatabaseManager."""

    def execute(self, query: str, params: Tuple[object, ...] = ...) -> object:
        """Execute a single SQL statement with optional parameters."""
        ...

    def fetchone(self) -> Optional[Tuple[object, ...]]:
        """Fetch the next row of a query result."""
        ...

    def fetchall(self) -> List[Tuple[object, ...]]:
        """Fetch all remaining rows of a query result."""
        ...

    def close(self) -> None:
        """Close the cursor."""
        ...

    @property
    def description(self) -> Optional[Sequence[Sequence[object]]]:
        """DB-API cursor description: column metadata or None before execution."""
        ...

    @property
    def rowcount(self) -> int:
        """Rows affected by the last statement."""
        ...


class ConnectionProtocol(Protocol):
    """Minimal DB-API connection protocol used by DatabaseManager."""

    autocommit: bool

    def cursor(self) -> CursorProtocol:
        """Return a new database cursor."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    def close(self) -> None:
        """Close the underlying connection."""
        ...


class DatabaseManager:
    """Centralized manager for database connections and operations.

    Handles connection management, query execution, schema initialization, and
    exception translation. All store access goes through this class so errors
    surface as `db.exceptions` types regardless of the driver.
    """

    def __init__(
        self,
        config: DatabaseConfig,
        debug_util: Optional[DebugUtil] = None,
        connection: Optional[ConnectionProtocol] = None,
    ) -> None:
        """Connect to Postgres using the given configuration.

        Args:
            config: Connection settings.
            debug_util: Optional DebugUtil used to trace executed SQL.
            connection: Pre-built DB-API connection; skips `psycopg2.connect`.

        Raises:
            DBConnectionError: If the database connection cannot be established.
        """
        self.config = config
        self.schema_name = config.schema_name
        self.debug_util = debug_util or DebugUtil()
        self._conn: Optional[ConnectionProtocol] = connection
        if self._conn is None:
            self._connect()

    def _connect(self) -> None:
        try:
            self._conn = cast(ConnectionProtocol, psycopg2.connect(**self.config.dsn_kwargs()))
            self._conn.autocommit = True
        except Exception as e:
            traceback.print_exc()
            self.debug_util.debugMessage(f"Postgres connection failed: {e}")
            raise DBConnectionError(f"Failed to connect to PostgreSQL database: {e}") from e

        # Ensure the target schema exists; search_path already points at it.
        try:
            self._execute_ddl(f"CREATE SCHEMA IF NOT EXISTS {self.schema_name}")
        except Exception as schema_exc:
            # Non-fatal: DDL/DML against the schema will surface the real problem.
            logger.warning("Failed to ensure schema '%s': %s", self.schema_name, schema_exc)

    def close(self) -> None:
        """Close the database connection.

        Raises:
            Exception: Whatever the driver raises while closing.
        """
        try:
            if self._conn is not None:
                self._conn.close()
        except Exception as e:
            logging.error("Error closing database connection: %s", e)
            self.debug_util.debugMessage(f"Error closing database connection: {e}")
            raise
        finally:
            self._conn = None

    def _get_cursor(self) -> CursorProtocol:
        """Get a cursor from the database connection.

        Raises:
            DBConnectionError: If the database connection is not established.
        """
        if self._conn is None:
            raise DBConnectionError("Database connection is not established")
        return self._conn.cursor()

    def _execute_ddl(self, query: str) -> None:
        """Execute a DDL statement on its own cursor and commit."""
        cursor = self._get_cursor()
        try:
            cursor.execute(self._qualify_schema_in_query(query))
            assert self._conn is not None
            self._conn.commit()
        finally:
            cursor.close()

    def _qualify_schema_in_query(self, query: str) -> str:
        """Prepare queries for PostgreSQL execution.

        Converts '?' placeholders to '%s' and qualifies the table name of
        CREATE TABLE / DROP TABLE statements with the configured schema. Other
        statements rely on the connection's search_path.
        """
        if "?" in query:
            query = query.replace("?", "%s")

        m = re.search(r"(?i)^\s*CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?([^\s;(]+)", query)
        if m and "." not in m.group(1):
            start, end = m.span(1)
            query = f"{query[:start]}{self.schema_name}.{m.group(1)}{query[end:]}"

        m2 = re.search(r"(?i)^\s*DROP\s+TABLE\s+(?:IF\s+EXISTS\s+)?([^\s;]+)", query)
        if m2 and "." not in m2.group(1):
            start, end = m2.span(1)
            query = f"{query[:start]}{self.schema_name}.{m2.group(1)}{query[end:]}"

        return query

    def _translate_and_raise(self, e: Exception) -> NoReturn:
        """Translate backend-specific exceptions to our custom exceptions and raise.

        Always raises; does not return.
        """
        if isinstance(e, DatabaseError):
            raise e
        if isinstance(e, (psycopg2.OperationalError, psycopg2.ProgrammingError)):
            error_msg = str(e).lower()
            if "connection" in error_msg:
                raise DBConnectionError(f"Failed to connect to PostgreSQL database: {e}") from e
            if "does not exist" in error_msg and "relation" in error_msg:
                raise TableNotFoundError(f"Table not found: {e}") from e
            if "column" in error_msg and "does not exist" in error_msg:
                raise SchemaError(f"Schema error: {e}") from e
            raise DatabaseError(f"Database operation failed: {e}") from e
        if isinstance(e, psycopg2.IntegrityError):
            error_msg = str(e).lower()
            if "foreign key" in error_msg:
                raise ForeignKeyError(f"Foreign key constraint failed: {e}") from e
            if "not null" in error_msg or "not-null" in error_msg or "null value" in error_msg or "unique" in error_msg:
                raise ConstraintError(f"Constraint violation: {e}") from e
            raise IntegrityError(f"Integrity error: {e}") from e
        if isinstance(e, psycopg2.DataError):
            raise DatabaseTypeError(f"Type error in query parameters: {e}") from e
        if isinstance(e, psycopg2.DatabaseError):
            raise DatabaseError(f"Database error: {e}") from e

        raise DatabaseError(f"Unexpected database error: {e}") from e

    def execute(self, query: str, params: Tuple[object, ...] = ()) -> CursorProtocol:
        """Execute a SQL query with parameters and commit immediately.

        Args:
            query: SQL query string using '?' placeholders
            params: Query parameters

        Returns:
            Database cursor object

        Raises:
            DBConnectionError, TableNotFoundError, SchemaError, DatabaseError,
            ForeignKeyError, ConstraintError, IntegrityError, DatabaseTypeError
        """
        try:
            cursor = self._get_cursor()
            query = self._qualify_schema_in_query(query)
            self.debug_util.debugMessage(f"Executing SQL (PG): {' '.join(query.split())}; params={params}")
            cursor.execute(query, params)
            if not query.strip().upper().startswith("SELECT"):
                assert self._conn is not None
                self._conn.commit()
            return cursor
        except Exception as e:
            self.debug_util.debugMessage(f"Exception during query: {e}. Rolling back transaction.")
            if self._conn is not None:
                try:
                    self._conn.rollback()
                except Exception as rollback_exc:
                    self.debug_util.debugMessage(f"Rollback failed: {rollback_exc}")
            self._translate_and_raise(e)

    @staticmethod
    def _row_to_dict(cursor: CursorProtocol, row: Tuple[object, ...]) -> Dict[str, object]:
        assert cursor.description is not None
        col_names = [cast(str, desc[0]) for desc in cursor.description]
        return {col_names[i]: row[i] for i in range(len(col_names))}

    def fetchone(self, query: str, params: Tuple[object, ...] = ()) -> Optional[Dict[str, object]]:
        """Execute a SQL query and fetch a single result.

        Returns:
            Dict keyed by column name, or None if no results
        """
        cursor = self.execute(query, params)
        result = cursor.fetchone()
        if result is None:
            return None
        return self._row_to_dict(cursor, result)

    def fetchall(self, query: str, params: Tuple[object, ...] = ()) -> List[Dict[str, object]]:
        """Execute a query and return all rows as a list of dicts keyed by column name."""
        cursor = self.execute(query, params)
        results = cursor.fetchall()
        if not results:
            return []
        return [self._row_to_dict(cursor, row) for row in results]

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists in the configured schema."""
        result = self.fetchone(
            "SELECT 1 FROM information_schema.tables "
            "WHERE table_schema = ? AND table_name = ? AND table_type = 'BASE TABLE'",
            (self.schema_name, table_name),
        )
        return result is not None

    def _create_users_table(self) -> None:
        """Create the users table keyed by our own UUID, unique on firebase_uid."""
        self._execute_ddl(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                firebase_uid TEXT NOT NULL UNIQUE,
                email TEXT,
                display_name TEXT,
                photo_url TEXT,
                created_at TIMESTAMP(6) NOT NULL DEFAULT CURRENT_TIMESTAMP
            );
            """
        )

    def _create_typing_sessions_table(self) -> None:
        """Create the typing_sessions table, one row per started test."""
        self._execute_ddl(
            """
            CREATE TABLE IF NOT EXISTS typing_sessions (
                session_id TEXT PRIMARY KEY,
                user_id TEXT,
                firebase_uid TEXT,
                mode TEXT NOT NULL,
                duration INTEGER,
                word_count INTEGER,
                started_at TIMESTAMP(6) NOT NULL,
                ended_at TIMESTAMP(6),
                wpm REAL,
                raw_wpm REAL,
                accuracy REAL,
                errors INTEGER,
                is_anonymous BOOLEAN NOT NULL,
                status TEXT NOT NULL
            );
            """
        )

    def _create_session_summaries_table(self) -> None:
        """Create the per-user, per-day session_summaries table."""
        self._execute_ddl(
            """
            CREATE TABLE IF NOT EXISTS session_summaries (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                session_date DATE NOT NULL,
                tests_completed INTEGER NOT NULL DEFAULT 0,
                avg_wpm NUMERIC(6,2),
                best_wpm NUMERIC(6,2),
                avg_accuracy NUMERIC(5,2),
                total_keystrokes INTEGER NOT NULL DEFAULT 0,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
                UNIQUE (user_id, session_date)
            );
            """
        )

    def _create_user_stats_table(self) -> None:
        """Create the user_stats table, one row per user."""
        self._execute_ddl(
            """
            CREATE TABLE IF NOT EXISTS user_stats (
                user_id TEXT PRIMARY KEY,
                total_tests INTEGER NOT NULL DEFAULT 0,
                total_time_seconds INTEGER NOT NULL DEFAULT 0,
                current_streak_days INTEGER NOT NULL DEFAULT 0,
                longest_streak_days INTEGER NOT NULL DEFAULT 0,
                best_wpm NUMERIC(6,2),
                xp INTEGER NOT NULL DEFAULT 0,
                level INTEGER NOT NULL DEFAULT 1,
                current_tier TEXT NOT NULL DEFAULT 'Bronze',
                last_test_date DATE,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )

    def init_tables(self) -> None:
        """Initialize all database tables by creating them if they do not exist."""
        self._create_users_table()
        self._create_typing_sessions_table()
        self._create_session_summaries_table()
        self._create_user_stats_table()

    def __enter__(self) -> "DatabaseManager":
        """Context manager protocol support."""
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: object,
    ) -> None:
        """Close the connection when leaving the context."""
        self.close()

