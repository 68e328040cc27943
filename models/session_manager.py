"""SessionManager for typing session records.

Provides typed create/end/query helpers for `TypingSession` objects and
delegates DB calls to `DatabaseManager`. In mock DB mode the records live in
process memory for the lifetime of the manager.
"""

import datetime
import logging
from typing import Dict, List, Mapping, Optional

from db.exceptions import (
    ConstraintError,
    DatabaseError,
    DatabaseTypeError,
    DBConnectionError,
    ForeignKeyError,
    IntegrityError,
    SchemaError,
)
from db.interfaces import DBExecutor
from helpers.debug_util import DebugUtil
from models.typing_session import SessionResult, TypingSession

logger = logging.getLogger(__name__)

_SESSION_COLUMNS = (
    "session_id",
    "user_id",
    "firebase_uid",
    "mode",
    "duration",
    "word_count",
    "started_at",
    "ended_at",
    "wpm",
    "raw_wpm",
    "accuracy",
    "errors",
    "is_anonymous",
    "status",
)

_DB_ERRORS = (
    DBConnectionError,
    ConstraintError,
    DatabaseError,
    DatabaseTypeError,
    ForeignKeyError,
    IntegrityError,
    SchemaError,
)


class SessionManager:
    """Manages storage of `TypingSession` records.

    Handles only exceptions from `db.exceptions`. All `session_id` values are
    UUID strings.
    """

    def __init__(self, db_manager: Optional[DBExecutor], debug_util: Optional[DebugUtil] = None) -> None:
        """Initialize manager with a `DatabaseManager`; None selects mock DB mode."""
        self.db_manager = db_manager
        self.debug_util = debug_util or DebugUtil()
        self._memory: Dict[str, TypingSession] = {}

    def create_session(
        self,
        *,
        mode: str,
        duration: Optional[int] = None,
        word_count: Optional[int] = None,
        user_id: Optional[str] = None,
        firebase_uid: Optional[str] = None,
        started_at: Optional[datetime.datetime] = None,
    ) -> TypingSession:
        """Store a new active session and return it.

        The session is anonymous unless `firebase_uid` is given.
        """
        session = TypingSession(
            mode=mode,
            duration=duration,
            word_count=word_count,
            user_id=user_id if firebase_uid is not None else None,
            firebase_uid=firebase_uid,
            started_at=started_at or datetime.datetime.now(datetime.timezone.utc),
            is_anonymous=firebase_uid is None,
        )
        try:
            self._insert_session(session)
        except _DB_ERRORS as e:
            msg = f"Error creating session: {e}"
            logger.error(msg)
            self.debug_util.debugMessage(msg)
            raise
        return session

    def get_session(self, session_id: str) -> Optional[TypingSession]:
        """Retrieve a session by its `session_id`. Returns None if not found."""
        if self.db_manager is None:
            return self._memory.get(session_id)
        try:
            row = self.db_manager.fetchone(
                f"SELECT {', '.join(_SESSION_COLUMNS)} FROM typing_sessions WHERE session_id = ?",
                (session_id,),
            )
        except _DB_ERRORS as e:
            msg = f"Error retrieving session by id: {e}"
            logger.error(msg)
            self.debug_util.debugMessage(msg)
            raise
        if not row:
            return None
        return TypingSession.from_row(row)

    def end_session(
        self,
        session_id: str,
        result: SessionResult,
        *,
        user_id: Optional[str] = None,
        firebase_uid: Optional[str] = None,
    ) -> Optional[TypingSession]:
        """Mark a session completed with the reported result.

        Returns the completed session, or None when no session has that id.
        """
        session = self.get_session(session_id)
        if session is None:
            return None
        return self.complete_session(session, result, user_id=user_id, firebase_uid=firebase_uid)

    def complete_session(
        self,
        session: TypingSession,
        result: SessionResult,
        *,
        user_id: Optional[str] = None,
        firebase_uid: Optional[str] = None,
    ) -> TypingSession:
        """Store `session` as completed with the reported result.

        A session that is already completed is overwritten with the new result.
        """
        completed = session.completed_with(result, user_id=user_id, firebase_uid=firebase_uid)
        try:
            self._update_session(completed)
        except _DB_ERRORS as e:
            msg = f"Error ending session: {e}"
            logger.error(msg)
            self.debug_util.debugMessage(msg)
            raise
        return completed

    def list_sessions_for_user(self, user_id: str, limit: int = 50) -> List[TypingSession]:
        """List a user's sessions, most recently started first."""
        if self.db_manager is None:
            owned = [s for s in self._memory.values() if s.user_id == user_id]
            owned.sort(key=lambda s: s.started_at, reverse=True)
            return owned[:limit]
        rows = self.db_manager.fetchall(
            f"""
            SELECT {', '.join(_SESSION_COLUMNS)}
            FROM typing_sessions
            WHERE user_id = ?
            ORDER BY started_at DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        return [TypingSession.from_row(r) for r in rows]

    def _params(self, session: TypingSession) -> Mapping[str, object]:
        return {name: getattr(session, name) for name in _SESSION_COLUMNS}

    def _insert_session(self, session: TypingSession) -> None:
        """Insert a new session into the store."""
        if self.db_manager is None:
            self._memory[session.session_id] = session
            return
        values = self._params(session)
        self.db_manager.execute(
            f"""
            INSERT INTO typing_sessions ({', '.join(_SESSION_COLUMNS)})
            VALUES ({', '.join('?' for _ in _SESSION_COLUMNS)})
            """,
            tuple(values[name] for name in _SESSION_COLUMNS),
        )

    def _update_session(self, session: TypingSession) -> None:
        """Update an existing session in the store."""
        if self.db_manager is None:
            self._memory[session.session_id] = session
            return
        values = self._params(session)
        updated = [name for name in _SESSION_COLUMNS if name != "session_id"]
        self.db_manager.execute(
            f"""
            UPDATE typing_sessions SET
                {', '.join(f'{name} = ?' for name in updated)}
            WHERE session_id = ?
            """,
            tuple(values[name] for name in updated) + (session.session_id,),
        )
