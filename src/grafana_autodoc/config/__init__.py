"""
grafana-autodoc configuration.

Pydantic-based settings read from AUTODOC_* environment variables and
overridden by command-line flags.
"""

from grafana_autodoc.config.settings import (
    LOG_LEVEL_ALIASES,
    VALID_LOG_LEVELS,
    LogLevel,
    Settings,
    load_settings,
)

__all__ = [
    "LOG_LEVEL_ALIASES",
    "VALID_LOG_LEVELS",
    "LogLevel",
    "Settings",
    "load_settings",
]
