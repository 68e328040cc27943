"""Pytest configuration for the test suite."""

from datetime import date
from typing import Any, Callable, Dict, Generator, Optional, Tuple
from unittest.mock import Mock

import pytest
from flask import Flask
from flask.testing import FlaskClient

from app import create_app
from helpers.config import AppConfig
from helpers.identity import IdentityProvider
from models.session_summary import SessionSummary

TEST_FIREBASE_UID = "firebase-uid-123"
TEST_USER_ID = "6f1d0c1e-6c3f-4d8e-9b43-2f1a3d9c7b10"

TEST_USER_ROW: Dict[str, object] = {
    "id": TEST_USER_ID,
    "firebase_uid": TEST_FIREBASE_UID,
    "email": "alice@snailtype.com",
    "display_name": "Alice",
    "photo_url": None,
    "created_at": None,
}


def make_summary(
    period_date: date,
    avg_wpm: Optional[float],
    tests_completed: Optional[int] = None,
    avg_accuracy: Optional[float] = None,
) -> SessionSummary:
    """Build a summary, defaulting to one test when a WPM value is given."""
    if tests_completed is None:
        tests_completed = 0 if avg_wpm is None else 1
    if avg_accuracy is None and avg_wpm is not None:
        avg_accuracy = 95.0
    return SessionSummary(
        period_date=period_date,
        avg_wpm=avg_wpm,
        avg_accuracy=avg_accuracy,
        tests_completed=tests_completed,
    )


@pytest.fixture
def mock_db_manager() -> Mock:
    """A stand-in for DatabaseManager; tests set fetchone/fetchall return values."""
    db = Mock()
    db.fetchone.return_value = None
    db.fetchall.return_value = []
    return db


@pytest.fixture
def mock_identity() -> Mock:
    """An identity provider that is configured but authenticates nobody by default."""
    identity = Mock(spec=IdentityProvider)
    identity.configured = True
    identity.claims_from_request.return_value = None
    return identity


@pytest.fixture
def signed_in(mock_identity: Mock) -> Dict[str, Any]:
    """Make every request carry a valid session for the test user."""
    claims: Dict[str, Any] = {"uid": TEST_FIREBASE_UID, "email": "alice@snailtype.com", "name": "Alice"}
    mock_identity.claims_from_request.return_value = claims
    return claims


@pytest.fixture
def app(mock_db_manager: Mock, mock_identity: Mock) -> Flask:
    return create_app(AppConfig(), db_manager=mock_db_manager, identity=mock_identity)


@pytest.fixture
def client(app: Flask) -> Generator[FlaskClient, None, None]:
    with app.test_client() as client:
        yield client


@pytest.fixture
def mock_mode_app(mock_identity: Mock) -> Flask:
    """An app with no store configured at all."""
    return create_app(AppConfig(), identity=mock_identity)


def route_queries(routes: Dict[str, Any]) -> Callable[..., Any]:
    """Side effect for fetchone/fetchall answering by a substring of the SQL.

    The first key found in the query wins; unmatched queries return None.
    """

    def answer(query: str, params: Tuple[object, ...] = ()) -> Any:
        for fragment, result in routes.items():
            if fragment in query:
                if isinstance(result, Exception):
                    raise result
                return result
        return None

    return answer
