"""Typing session model.

One `TypingSession` is stored per started typing test. It is created in the
"active" state and moved to "completed" when the client reports its result.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

SessionStatus = Literal["active", "completed"]


class SessionResult(BaseModel):
    """Final metrics reported by the client when a test ends."""

    wpm: float = Field(ge=0)
    raw_wpm: Optional[float] = Field(default=None, ge=0)
    accuracy: float = Field(ge=0, le=100)
    errors: int = Field(default=0, ge=0)
    duration: int = Field(ge=0)
    word_count: Optional[int] = Field(default=None, ge=0)
    started_at: Optional[datetime] = None
    ended_at: datetime

    @field_validator("started_at", "ended_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Timestamps without an offset are taken as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def check_times(self) -> "SessionResult":
        """Validate that the test did not end before it started."""
        if self.started_at is not None and self.started_at > self.ended_at:
            raise ValueError("started_at must be before ended_at")
        return self

    @property
    def keystrokes_estimate(self) -> int:
        """Approximate keystrokes typed: duration x wpm x 5 characters per word."""
        return int(round(self.duration * self.wpm * 5))


class TypingSession(BaseModel):
    """Pydantic model for a typing test, matching the typing_sessions table.

    Anonymous sessions carry no user_id or firebase_uid.
    """

    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: Optional[str] = None
    firebase_uid: Optional[str] = None
    mode: str
    duration: Optional[int] = Field(default=None, ge=0)
    word_count: Optional[int] = Field(default=None, ge=0)
    started_at: datetime
    ended_at: Optional[datetime] = None
    wpm: Optional[float] = None
    raw_wpm: Optional[float] = None
    accuracy: Optional[float] = None
    errors: Optional[int] = None
    is_anonymous: bool = True
    status: SessionStatus = "active"

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
    }

    @field_validator("session_id")
    @classmethod
    def validate_uuid(cls, v: str) -> str:
        """Validate that the provided value is a valid UUID string."""
        uuid.UUID(v)
        return v

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("mode cannot be blank")
        return v.strip()

    @model_validator(mode="after")
    def check_identity(self) -> "TypingSession":
        """An anonymous session must not reference a user, and vice versa."""
        if self.is_anonymous and self.firebase_uid is not None:
            raise ValueError("anonymous sessions cannot carry a firebase_uid")
        if not self.is_anonymous and self.firebase_uid is None:
            raise ValueError("authenticated sessions require a firebase_uid")
        return self

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    def completed_with(
        self,
        result: SessionResult,
        user_id: Optional[str] = None,
        firebase_uid: Optional[str] = None,
    ) -> "TypingSession":
        """Return a completed copy carrying the reported result.

        When `firebase_uid` is given the session is attributed to that user,
        otherwise it becomes anonymous.
        """
        return TypingSession(
            session_id=self.session_id,
            user_id=user_id if firebase_uid is not None else None,
            firebase_uid=firebase_uid,
            mode=self.mode,
            duration=result.duration,
            word_count=result.word_count,
            started_at=result.started_at or self.started_at,
            ended_at=result.ended_at,
            wpm=result.wpm,
            raw_wpm=result.raw_wpm,
            accuracy=result.accuracy,
            errors=result.errors,
            is_anonymous=firebase_uid is None,
            status="completed",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-friendly primitives."""
        return self.model_dump(mode="json")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TypingSession":
        """Create a TypingSession from a typing_sessions row."""
        try:
            return cls.model_validate(dict(row))
        except ValueError as e:
            raise ValueError(f"Invalid session data: {str(e)}") from e
