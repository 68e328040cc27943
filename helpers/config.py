"""Application configuration.

Store and identity-provider credentials are optional: a missing database block
switches the managers into mock DB mode, a missing Firebase block leaves the
dashboard behind its placeholder page.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .debug_util import DEBUG_MODE_ENV, DEBUG_MODES

logger = logging.getLogger(__name__)

FIREBASE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class ConfigError(Exception):
    """Raised when an environment value cannot be turned into configuration."""

    def __init__(self, message: str = "Invalid configuration") -> None:
        """Initialize the exception with an optional message."""
        self.message = message
        super().__init__(self.message)


class DatabaseConfig(BaseModel):
    """Connection settings for the Postgres store holding users, sessions and summaries."""

    host: str
    port: int = Field(default=5432, gt=0, lt=65536)
    database: str
    username: str
    password: str
    sslmode: str = "prefer"
    schema_name: str = "typing"

    model_config = {"frozen": True}

    @field_validator("schema_name")
    @classmethod
    def validate_schema_name(cls, v: str) -> str:
        """Schema names are interpolated into DDL, so only identifiers are allowed."""
        if not v.isidentifier():
            raise ValueError("schema_name must be a plain identifier")
        return v

    def dsn_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for `psycopg2.connect`."""
        return {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.username,
            "password": self.password,
            "sslmode": self.sslmode,
            "options": f"-c search_path={self.schema_name},public",
        }


class FirebaseConfig(BaseModel):
    """Service-account credentials for the Firebase Admin SDK."""

    project_id: str
    client_email: str
    private_key: str

    model_config = {"frozen": True}

    @field_validator("private_key")
    @classmethod
    def unescape_private_key(cls, v: str) -> str:
        """Keys pasted into env files carry literal backslash-n sequences."""
        return v.replace("\\n", "\n")

    def certificate(self) -> Dict[str, str]:
        """Service-account info accepted by `firebase_admin.credentials.Certificate`."""
        return {
            "type": "service_account",
            "project_id": self.project_id,
            "client_email": self.client_email,
            "private_key": self.private_key,
            "token_uri": FIREBASE_TOKEN_URI,
        }


class AppConfig(BaseModel):
    """Top-level configuration passed to `create_app`."""

    database: Optional[DatabaseConfig] = None
    firebase: Optional[FirebaseConfig] = None
    debug_mode: str = "quiet"
    secure_cookies: bool = False
    chart_window: int = Field(default=30, ge=1)
    daily_average_days: int = Field(default=30, ge=1)
    recent_sessions_limit: int = Field(default=20, ge=1)
    session_cookie_days: int = Field(default=14, ge=1)

    model_config = {"frozen": True}

    @field_validator("debug_mode")
    @classmethod
    def validate_debug_mode(cls, v: str) -> str:
        """Fall back to quiet for unknown modes, matching DebugUtil."""
        lowered = v.lower()
        return lowered if lowered in DEBUG_MODES else "quiet"

    @property
    def mock_mode(self) -> bool:
        """True when no store credentials were supplied."""
        return self.database is None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build configuration from environment variables.

        Raises:
            ConfigError: If a variable cannot be parsed or is out of range.
        """
        env = os.environ if environ is None else environ
        try:
            return cls(
                database=_database_from_env(env),
                firebase=_firebase_from_env(env),
                debug_mode=env.get(DEBUG_MODE_ENV, "quiet"),
                secure_cookies=env.get("TYPING_DASHBOARD_ENV", "").lower() == "production",
                chart_window=_int_from_env(env, "TYPING_DASHBOARD_CHART_WINDOW", 30),
                recent_sessions_limit=_int_from_env(env, "TYPING_DASHBOARD_RECENT_LIMIT", 20),
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration value: {exc}") from exc


def _int_from_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _database_from_env(env: Mapping[str, str]) -> Optional[DatabaseConfig]:
    required = {
        "host": env.get("TYPING_DB_HOST"),
        "database": env.get("TYPING_DB_NAME"),
        "username": env.get("TYPING_DB_USER"),
        "password": env.get("TYPING_DB_PASSWORD"),
    }
    if not all(required.values()):
        logger.warning("Postgres environment variables missing. Using Mock DB Mode.")
        return None
    return DatabaseConfig(
        host=str(required["host"]),
        database=str(required["database"]),
        username=str(required["username"]),
        password=str(required["password"]),
        port=_int_from_env(env, "TYPING_DB_PORT", 5432),
        sslmode=env.get("TYPING_DB_SSLMODE") or "prefer",
        schema_name=env.get("TYPING_DB_SCHEMA") or "typing",
    )


def _firebase_from_env(env: Mapping[str, str]) -> Optional[FirebaseConfig]:
    names = (
        "FIREBASE_ADMIN_PROJECT_ID",
        "FIREBASE_ADMIN_CLIENT_EMAIL",
        "FIREBASE_ADMIN_PRIVATE_KEY",
    )
    missing = [name for name in names if not env.get(name)]
    if missing:
        logger.warning("Missing Firebase Admin environment variables: %s", " ".join(missing))
        return None
    return FirebaseConfig(
        project_id=env["FIREBASE_ADMIN_PROJECT_ID"],
        client_email=env["FIREBASE_ADMIN_CLIENT_EMAIL"],
        private_key=env["FIREBASE_ADMIN_PRIVATE_KEY"],
    )
