"""Core modules for grafana-autodoc - centralized error definitions."""

from grafana_autodoc.core.errors import (
    AutodocError,
    BatchError,
    ConfigurationError,
    DashboardIOError,
    DeserializationError,
    ExitCode,
    InvalidInputError,
    ParseError,
    PatternError,
    RenderError,
    describe_failure,
    format_error_list,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "AutodocError",
    "BatchError",
    "ConfigurationError",
    "DashboardIOError",
    "DeserializationError",
    "InvalidInputError",
    "ParseError",
    "PatternError",
    "RenderError",
    "main_with_error_handling",
    "describe_failure",
    "format_error_list",
    "format_error_message",
]
