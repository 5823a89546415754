"""
Run settings using Pydantic.

Provides environment-based configuration loading with AUTODOC_ prefix.
CLI flags override environment values; the resulting Settings object is
built once at startup and handed to the batch processor.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings

from grafana_autodoc.core.errors import ConfigurationError


class LogLevel(str, Enum):
    """Supported log verbosity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def logging_level(self) -> int:
        """Equivalent level for the standard logging module."""
        return _STDLIB_LEVELS[self]


_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}

# Numeric levels accepted by earlier releases of the tool
LOG_LEVEL_ALIASES = {
    "-4": LogLevel.DEBUG,
    "0": LogLevel.INFO,
    "4": LogLevel.WARN,
    "8": LogLevel.ERROR,
    "warning": LogLevel.WARN,
}

VALID_LOG_LEVELS = "debug(-4), info(0), warn(4), error(8)"


class Settings(BaseSettings):
    """Settings for one documentation run."""

    # Path to a dashboard file, a directory of dashboards, or a glob pattern
    input: str = ""

    # Directory the markdown files are written to
    output: Path = Path(".")

    log_level: LogLevel = LogLevel.INFO

    class Config:
        env_prefix = "AUTODOC_"
        extra = "ignore"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            key = value.strip().lower()
            return LOG_LEVEL_ALIASES.get(key, key)
        return value

    def validate_for_run(self) -> None:
        """Check the settings are complete enough to start processing."""
        if not self.input:
            raise ConfigurationError("input flag is required")


def load_settings(**overrides: Any) -> Settings:
    """
    Build settings from the environment plus explicit overrides.

    Overrides set to None are ignored so unset CLI flags fall back to the
    environment or defaults.

    Raises:
        ConfigurationError: If a value is invalid or the input is missing
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        settings = Settings(**values)
    except ValidationError as e:
        if any(err["loc"] and err["loc"][0] == "log_level" for err in e.errors()):
            raise ConfigurationError(
                f"invalid log level: {values.get('log_level')}",
                details={"valid_values": VALID_LOG_LEVELS},
            ) from e
        raise ConfigurationError(f"invalid settings: {e}") from e
    settings.validate_for_run()
    return settings
