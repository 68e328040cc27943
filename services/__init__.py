"""Service initialization module.

Factory helpers to create and wire the managers with their dependencies.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from flask import current_app

from db.database_manager import DatabaseManager
from helpers.config import AppConfig
from helpers.debug_util import DebugUtil
from helpers.identity import IdentityProvider
from models.session_manager import SessionManager
from models.summary_manager import SummaryManager
from models.user_manager import UserManager


class Services(NamedTuple):
    """Everything a request handler needs, bound to one store connection."""

    config: AppConfig
    db_manager: Optional[DatabaseManager]
    identity: IdentityProvider
    users: UserManager
    sessions: SessionManager
    summaries: SummaryManager


def init_services(
    config: AppConfig,
    db_manager: Optional[DatabaseManager] = None,
    identity: Optional[IdentityProvider] = None,
) -> Services:
    """Initialize and return the service container.

    A database manager is created from `config.database` unless one is passed
    in; with neither, every manager runs in mock DB mode.

    Example:
        services = init_services(AppConfig.from_env()).
    """
    debug_util = DebugUtil(config.debug_mode)
    if db_manager is None and config.database is not None:
        db_manager = DatabaseManager(config.database, debug_util=debug_util)
        try:
            db_manager.init_tables()
        except Exception:
            # Do not leak the connection if schema setup fails.
            db_manager.close()
            raise

    return Services(
        config=config,
        db_manager=db_manager,
        identity=identity or IdentityProvider(config.firebase),
        users=UserManager(db_manager=db_manager, debug_util=debug_util),
        sessions=SessionManager(db_manager, debug_util=debug_util),
        summaries=SummaryManager(db_manager, debug_util=debug_util),
    )


EXTENSION_KEY = "typing_dashboard"


def current_services() -> Services:
    """The container registered on the active Flask app by `create_app`."""
    return current_app.extensions[EXTENSION_KEY]
