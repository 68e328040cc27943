"""User profile model.

Profiles are synced from identity-provider claims on sign-in; the provider owns
authentication, this model only mirrors the display fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator

MOCK_FIREBASE_UID = "mock-user-id"
MOCK_USER_ID = "mock-db-id"


class User(BaseModel):
    """User data model with validation.

    Attributes:
        id: Our own identifier for the user (UUID string).
        firebase_uid: Identity-provider subject; unique per user.
        email: Optional email address, normalized by email-validator.
        display_name: Optional name shown on the dashboard.
        photo_url: Optional avatar URL.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    firebase_uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {
        "frozen": True,
    }

    @field_validator("firebase_uid")
    @classmethod
    def validate_firebase_uid(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("firebase_uid cannot be blank.")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        """Validate and normalize the email address using email-validator.

        Deliverability is not checked; the identity provider already verified it.
        """
        if v is None or not v.strip():
            return None
        try:
            return validate_email(v.strip(), check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email address: {e}") from e

    @property
    def greeting_name(self) -> str:
        """Name used in the dashboard greeting."""
        return self.display_name or self.email or ""

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any], user_id: Optional[str] = None) -> "User":
        """Build a profile from decoded identity-provider claims.

        Accepts both the token claim names (`name`, `picture`) and the client
        SDK names (`displayName`, `photoURL`).
        """
        data: Dict[str, Any] = {
            "firebase_uid": claims["uid"],
            "email": claims.get("email"),
            "display_name": claims.get("name") or claims.get("displayName"),
            "photo_url": claims.get("picture") or claims.get("photoURL"),
        }
        if user_id is not None:
            data["id"] = user_id
        return cls(**data)

    @classmethod
    def mock(cls) -> "User":
        """The demo profile served in mock DB mode."""
        return cls(
            id=MOCK_USER_ID,
            firebase_uid=MOCK_FIREBASE_UID,
            email="demo@snailtype.com",
            display_name="Demo User",
            photo_url="https://via.placeholder.com/150",
            created_at=datetime.now(),
        )
