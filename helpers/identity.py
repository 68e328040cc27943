"""Identity verification through the Firebase Admin SDK.

The dashboard never handles passwords: the client signs in with Firebase,
posts the resulting ID token once, and from then on presents a session
cookie minted by Firebase. This module only verifies those artifacts.
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin import exceptions as firebase_exceptions
from flask import Request

from .config import FirebaseConfig

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "__session"

Claims = Dict[str, Any]


class IdentityError(Exception):
    """Raised when an ID token cannot be verified or exchanged."""

    def __init__(self, message: str = "Identity verification failed") -> None:
        """Initialize the exception with an optional message."""
        self.message = message
        super().__init__(self.message)


class IdentityProvider:
    """Thin wrapper around a lazily initialized `firebase_admin` app."""

    def __init__(self, config: Optional[FirebaseConfig]) -> None:
        self.config = config
        self._app: Optional[firebase_admin.App] = None

    @property
    def configured(self) -> bool:
        return self.config is not None

    def _firebase_app(self) -> firebase_admin.App:
        if self.config is None:
            raise IdentityError("Firebase Admin is not configured")
        if self._app is None:
            try:
                cert = credentials.Certificate(self.config.certificate())
                # A unique name keeps several Flask apps in one process independent.
                self._app = firebase_admin.initialize_app(
                    cert, name=f"typing-dashboard-{uuid.uuid4().hex[:8]}"
                )
            except ValueError as e:
                logger.error("Firebase Admin initialization error: %s", e)
                raise IdentityError(f"Firebase Admin failed to initialize: {e}") from e
        return self._app

    def verify_id_token(self, id_token: str) -> Claims:
        """Verify a client ID token and return its decoded claims.

        Raises:
            IdentityError: If the token is invalid or the SDK is not configured.
        """
        try:
            return dict(auth.verify_id_token(id_token, app=self._firebase_app()))
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            raise IdentityError(f"Invalid ID token: {e}") from e

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        """Exchange a verified ID token for a session cookie value.

        Raises:
            IdentityError: If Firebase refuses the exchange.
        """
        try:
            cookie = auth.create_session_cookie(id_token, expires_in=expires_in, app=self._firebase_app())
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            raise IdentityError(f"Failed to create session cookie: {e}") from e
        return cookie.decode() if isinstance(cookie, bytes) else cookie

    def verify_session_cookie(self, cookie: Optional[str]) -> Optional[Claims]:
        """Return the claims of a valid, unrevoked session cookie, else None."""
        if not self.configured or not cookie:
            return None
        try:
            return dict(auth.verify_session_cookie(cookie, check_revoked=True, app=self._firebase_app()))
        except (IdentityError, ValueError, firebase_exceptions.FirebaseError) as e:
            logger.error("Auth verification error: %s", e)
            return None

    def claims_from_request(self, request: Request) -> Optional[Claims]:
        """Verify the session cookie carried by a Flask request, if any."""
        return self.verify_session_cookie(request.cookies.get(SESSION_COOKIE_NAME))
