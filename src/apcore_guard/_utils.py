"""Internal utility functions for apcore-guard."""

from __future__ import annotations

import logging

from apcore_guard.constants import VALID_LOG_LEVELS


def configure_logging(log_level: str) -> None:
    """Set the level of the ``apcore_guard`` logger hierarchy.

    Raises:
        ValueError: If *log_level* is not a known level name.
    """
    if log_level.upper() not in VALID_LOG_LEVELS:
        raise ValueError(f"Unknown log level: {log_level!r}. Valid: {sorted(VALID_LOG_LEVELS)}")
    logging.getLogger("apcore_guard").setLevel(getattr(logging, log_level.upper()))
