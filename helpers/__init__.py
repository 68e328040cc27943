"""Helper utilities for the typing dashboard.

Configuration loading, debug output and identity verification shared by the
blueprints and the managers.
"""

from .config import AppConfig, ConfigError, DatabaseConfig, FirebaseConfig  # noqa: F401
from .debug_util import DebugUtil  # noqa: F401
