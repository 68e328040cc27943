"""Tests for the DatabaseManager class.

A recording fake connection stands in for psycopg2, so these tests cover
query preparation, commit/rollback behavior, row mapping, and exception
translation without a running Postgres.
"""

from typing import Any, List, Optional, Sequence, Tuple
from unittest.mock import patch

import psycopg2
import pytest

from db.database_manager import DatabaseManager
from db.exceptions import (
    ConstraintError,
    DatabaseError,
    DatabaseTypeError,
    DBConnectionError,
    ForeignKeyError,
    IntegrityError,
    SchemaError,
    TableNotFoundError,
)
from helpers.config import DatabaseConfig

CONFIG = DatabaseConfig(host="localhost", database="typing", username="dash", password="secret")


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self.conn = conn
        self.description: Optional[Sequence[Sequence[object]]] = None
        self.rowcount = 0
        self._rows: List[Tuple[object, ...]] = []

    def execute(self, query: str, params: Tuple[object, ...] = ()) -> None:
        self.conn.executed.append((query, params))
        if self.conn.error is not None:
            raise self.conn.error
        self.description = [(name,) for name in self.conn.columns]
        self._rows = list(self.conn.rows)

    def fetchone(self) -> Optional[Tuple[object, ...]]:
        return self._rows[0] if self._rows else None

    def fetchall(self) -> List[Tuple[object, ...]]:
        return self._rows

    def close(self) -> None:
        self.conn.closed_cursors += 1


class FakeConnection:
    def __init__(self) -> None:
        self.autocommit = False
        self.executed: List[Tuple[str, Tuple[object, ...]]] = []
        self.columns: List[str] = []
        self.rows: List[Tuple[object, ...]] = []
        self.error: Optional[Exception] = None
        self.commits = 0
        self.rollbacks = 0
        self.closed_cursors = 0
        self.closed = False

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def db(conn: FakeConnection) -> DatabaseManager:
    return DatabaseManager(CONFIG, connection=conn)  # type: ignore[arg-type]


class TestConnection:
    def test_connect_uses_config_and_creates_schema(self, conn: FakeConnection) -> None:
        with patch("db.database_manager.psycopg2.connect", return_value=conn) as connect:
            DatabaseManager(CONFIG)
        connect.assert_called_once_with(**CONFIG.dsn_kwargs())
        assert conn.autocommit is True
        assert conn.executed[0][0] == "CREATE SCHEMA IF NOT EXISTS typing"

    def test_connect_failure(self) -> None:
        with patch("db.database_manager.psycopg2.connect", side_effect=psycopg2.OperationalError("refused")):
            with pytest.raises(DBConnectionError):
                DatabaseManager(CONFIG)

    def test_context_manager_closes(self, conn: FakeConnection) -> None:
        with DatabaseManager(CONFIG, connection=conn) as db:  # type: ignore[arg-type]
            db.execute("SELECT 1")
        assert conn.closed

    def test_execute_after_close(self, db: DatabaseManager) -> None:
        db.close()
        with pytest.raises(DBConnectionError):
            db.execute("SELECT 1")


class TestQueryPreparation:
    def test_placeholders_are_converted(self, db: DatabaseManager, conn: FakeConnection) -> None:
        db.execute("SELECT * FROM users WHERE firebase_uid = ? AND email = ?", ("a", "b"))
        assert conn.executed[-1] == ("SELECT * FROM users WHERE firebase_uid = %s AND email = %s", ("a", "b"))

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("CREATE TABLE IF NOT EXISTS users (id TEXT)", "CREATE TABLE IF NOT EXISTS typing.users (id TEXT)"),
            ("CREATE TABLE user_stats(id TEXT)", "CREATE TABLE typing.user_stats(id TEXT)"),
            ("DROP TABLE IF EXISTS session_summaries", "DROP TABLE IF EXISTS typing.session_summaries"),
            ("CREATE TABLE other.users (id TEXT)", "CREATE TABLE other.users (id TEXT)"),
        ],
    )
    def test_table_ddl_is_schema_qualified(self, db: DatabaseManager, query: str, expected: str) -> None:
        assert db._qualify_schema_in_query(query) == expected

    def test_select_does_not_commit(self, db: DatabaseManager, conn: FakeConnection) -> None:
        db.execute("  SELECT 1")
        assert conn.commits == 0

    def test_write_commits(self, db: DatabaseManager, conn: FakeConnection) -> None:
        db.execute("UPDATE users SET email = ? WHERE id = ?", ("a@b.c", "1"))
        assert conn.commits == 1


class TestFetch:
    def test_fetchone_returns_dict(self, db: DatabaseManager, conn: FakeConnection) -> None:
        conn.columns = ["id", "email"]
        conn.rows = [("1", "alice@snailtype.com"), ("2", "bob@snailtype.com")]
        assert db.fetchone("SELECT id, email FROM users") == {"id": "1", "email": "alice@snailtype.com"}

    def test_fetchone_without_rows(self, db: DatabaseManager) -> None:
        assert db.fetchone("SELECT id FROM users") is None

    def test_fetchall_returns_dicts(self, db: DatabaseManager, conn: FakeConnection) -> None:
        conn.columns = ["id"]
        conn.rows = [("1",), ("2",)]
        assert db.fetchall("SELECT id FROM users") == [{"id": "1"}, {"id": "2"}]

    def test_fetchall_empty(self, db: DatabaseManager) -> None:
        assert db.fetchall("SELECT id FROM users") == []

    def test_table_exists(self, db: DatabaseManager, conn: FakeConnection) -> None:
        conn.columns = ["?column?"]
        conn.rows = [(1,)]
        assert db.table_exists("users")
        assert conn.executed[-1][1] == ("typing", "users")
        conn.rows = []
        assert not db.table_exists("missing")


class TestErrorTranslation:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (psycopg2.OperationalError("server closed the connection unexpectedly"), DBConnectionError),
            (psycopg2.ProgrammingError('relation "users" does not exist'), TableNotFoundError),
            (psycopg2.ProgrammingError('column "nope" does not exist'), SchemaError),
            (psycopg2.ProgrammingError("syntax error at or near"), DatabaseError),
            (psycopg2.IntegrityError("insert violates foreign key constraint"), ForeignKeyError),
            (psycopg2.IntegrityError("duplicate key value violates unique constraint"), ConstraintError),
            (psycopg2.IntegrityError('null value in column "mode"'), ConstraintError),
            (psycopg2.IntegrityError("check constraint"), IntegrityError),
            (psycopg2.DataError("invalid input syntax for type integer"), DatabaseTypeError),
            (psycopg2.DatabaseError("something else"), DatabaseError),
            (RuntimeError("boom"), DatabaseError),
        ],
    )
    def test_errors_are_translated(
        self, db: DatabaseManager, conn: FakeConnection, error: Exception, expected: Any
    ) -> None:
        conn.error = error
        with pytest.raises(expected):
            db.execute("INSERT INTO users (id) VALUES (?)", ("1",))
        assert conn.rollbacks == 1
        assert conn.commits == 0


def test_init_tables_creates_all_tables(db: DatabaseManager, conn: FakeConnection) -> None:
    db.init_tables()
    created = [q for q, _ in conn.executed]
    for table in ("users", "typing_sessions", "session_summaries", "user_stats"):
        assert any(f"CREATE TABLE IF NOT EXISTS typing.{table}" in q for q in created)
    assert conn.commits == 4
    assert conn.closed_cursors == 4
