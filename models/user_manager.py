"""User Manager for profile sync and lookup.

Handles all DB access for users. Without a database manager it runs in mock DB
mode and serves the demo profile.
"""

import logging
from typing import Any, Mapping, Optional

from db.exceptions import DatabaseError
from db.interfaces import DBExecutor
from helpers.debug_util import DebugUtil
from models.user import MOCK_FIREBASE_UID, User

logger = logging.getLogger(__name__)


class UserValidationError(Exception):
    """Raised when identity claims cannot be turned into a user profile."""

    def __init__(self, message: str = "User validation failed") -> None:
        """Initialize the exception with an optional message."""
        self.message = message
        super().__init__(self.message)


class UserManager:
    """Sync and query `User` profiles via `DatabaseManager`."""

    def __init__(self, *, db_manager: Optional[DBExecutor], debug_util: Optional[DebugUtil] = None) -> None:
        """Create a new `UserManager`; `db_manager=None` selects mock DB mode."""
        self.db_manager = db_manager
        self.debug_util = debug_util or DebugUtil()

    @property
    def mock_mode(self) -> bool:
        return self.db_manager is None

    @staticmethod
    def _row_to_user(row: Mapping[str, object]) -> User:
        return User(
            id=str(row["id"]),
            firebase_uid=str(row["firebase_uid"]),
            email=row.get("email"),  # type: ignore[arg-type]
            display_name=row.get("display_name"),  # type: ignore[arg-type]
            photo_url=row.get("photo_url"),  # type: ignore[arg-type]
            created_at=row.get("created_at"),  # type: ignore[arg-type]
        )

    def sync_user(self, *, claims: Mapping[str, Any]) -> User:
        """Insert or update the profile for the given identity claims.

        Upserts on `firebase_uid`, so repeated sign-ins keep the same `id`.

        Raises:
            UserValidationError: If the claims do not describe a valid user.
            DatabaseError: If the store rejects the upsert.
        """
        try:
            user = User.from_claims(claims)
        except (KeyError, ValueError) as e:
            raise UserValidationError(f"Invalid identity claims: {e}") from e

        if self.db_manager is None:
            self.debug_util.debugMessage(f"Mock DB mode: skipping profile sync for {user.firebase_uid}")
            return user

        try:
            row = self.db_manager.fetchone(
                """
                INSERT INTO users (id, firebase_uid, email, display_name, photo_url)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (firebase_uid) DO UPDATE SET
                    email = EXCLUDED.email,
                    display_name = EXCLUDED.display_name,
                    photo_url = EXCLUDED.photo_url
                RETURNING id, firebase_uid, email, display_name, photo_url, created_at
                """,
                (user.id, user.firebase_uid, user.email, user.display_name, user.photo_url),
            )
        except DatabaseError as e:
            logger.error("Error syncing user to PostgreSQL: %s", e)
            raise
        return self._row_to_user(row) if row else user

    def get_user_by_firebase_uid(self, *, firebase_uid: str) -> Optional[User]:
        """Return the profile for an identity-provider subject, or None if unknown.

        Mock DB mode, and the demo subject itself, resolve to the demo profile.
        """
        if self.db_manager is None or firebase_uid == MOCK_FIREBASE_UID:
            return User.mock()
        row = self.db_manager.fetchone(
            "SELECT id, firebase_uid, email, display_name, photo_url, created_at FROM users WHERE firebase_uid = ?",
            (firebase_uid,),
        )
        if not row:
            return None
        return self._row_to_user(row)
