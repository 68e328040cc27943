"""Debug utilities for controlling debug output across the dashboard.

Provides a centralized way to handle debug messages, supporting both quiet mode
(logging only) and loud mode (print to stdout).
"""

import logging
import os
from typing import Optional

DEBUG_MODE_ENV = "TYPING_DASHBOARD_DEBUG_MODE"
DEBUG_MODES = ("quiet", "loud")


class DebugUtil:
    """Manage debug output based on debug mode setting.

    Supports two modes:
    - "quiet": Debug messages are logged only
    - "loud": Debug messages are printed to stdout
    """

    def __init__(self, mode: Optional[str] = None) -> None:
        """Initialize from an explicit mode or the TYPING_DASHBOARD_DEBUG_MODE variable.

        Defaults to "quiet" if neither is set or the value is not recognized.
        """
        raw_mode = mode if mode is not None else os.environ.get(DEBUG_MODE_ENV, "quiet")
        self._mode = self._coerce(raw_mode)

        self._logger = logging.getLogger(self.__class__.__name__)
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)
            self._logger.setLevel(logging.DEBUG)

    @staticmethod
    def _coerce(mode: str) -> str:
        lowered = mode.lower()
        return lowered if lowered in DEBUG_MODES else "quiet"

    def debug_mode(self) -> str:
        """Get the current debug mode.

        Returns:
            The current debug mode ("quiet" or "loud").
        """
        return self._mode

    def debugMessage(self, *args: object) -> None:
        """Output a debug message based on the current debug mode.

        In "quiet" mode: Messages are logged using the logger.
        In "loud" mode: Messages are printed to stdout using print().
        """
        message = " ".join(str(arg) for arg in args)
        if not message:
            return
        if self._mode == "loud":
            print("[DEBUG]", message)
        else:
            self._logger.debug(message)

    def set_mode(self, mode: str) -> None:
        """Change the debug mode.

        Args:
            mode: New debug mode - either "quiet" or "loud". Invalid values default to "quiet".
        """
        self._mode = self._coerce(mode)

    def is_loud(self) -> bool:
        """Check if debug mode is set to loud."""
        return self._mode == "loud"

    def is_quiet(self) -> bool:
        """Check if debug mode is set to quiet."""
        return self._mode == "quiet"
