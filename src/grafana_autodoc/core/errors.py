"""
Unified error handling for grafana-autodoc.

Every failure the tool can report derives from AutodocError, which carries
the process exit code used by the CLI.

Exit Codes:
- 0: Success
- 10: Configuration error (bad flags or settings)
- 11: Input error (unresolvable input or malformed glob)
- 12: Processing error (one or more dashboards failed)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, Sequence, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for the CLI."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    INPUT_ERROR = 11
    PROCESSING_ERROR = 12
    UNKNOWN_ERROR = 127


class AutodocError(Exception):
    """Base exception for grafana-autodoc errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(AutodocError):
    """Raised for invalid flags or settings."""

    exit_code = ExitCode.CONFIG_ERROR


class InvalidInputError(AutodocError):
    """Raised when the input is not a file, directory or glob pattern."""

    exit_code = ExitCode.INPUT_ERROR


class PatternError(AutodocError):
    """Raised for malformed glob syntax."""

    exit_code = ExitCode.INPUT_ERROR


class DeserializationError(AutodocError):
    """Raised when a dashboard document is not valid dashboard JSON."""

    exit_code = ExitCode.PROCESSING_ERROR


class DashboardIOError(AutodocError):
    """Raised when a dashboard can't be read or its markdown can't be written."""

    exit_code = ExitCode.PROCESSING_ERROR


class RenderError(AutodocError):
    """Raised when the markdown template can't be loaded or executed."""

    exit_code = ExitCode.PROCESSING_ERROR


class ParseError(AutodocError):
    """Raised for a malformed PromQL expression.

    Attributes:
        expression: The expression that failed to parse
        reason: Human-readable description of the problem
        position: Zero-based character offset of the problem
    """

    exit_code = ExitCode.PROCESSING_ERROR

    def __init__(self, expression: str, reason: str, position: int = 0):
        self.expression = expression
        self.reason = reason
        self.position = position
        line, column = _line_and_column(expression, position)
        super().__init__(
            f"{line}:{column}: parse error: {reason}",
            details={"expr": expression},
        )


class BatchError(AutodocError):
    """Aggregate of every per-file failure in a batch.

    The message lists each failure on its own line so no file's reason is
    hidden behind another.
    """

    exit_code = ExitCode.PROCESSING_ERROR

    def __init__(self, errors: Sequence[BaseException]):
        self.errors = list(errors)
        super().__init__(
            format_error_list(self.errors),
            details={"failed": len(self.errors)},
        )


def _line_and_column(text: str, position: int) -> tuple[int, int]:
    """Convert an offset into 1-based line and column numbers."""
    position = max(0, min(position, len(text)))
    line = text.count("\n", 0, position) + 1
    line_start = text.rfind("\n", 0, position) + 1
    return line, position - line_start + 1


def describe_failure(error: BaseException) -> str:
    """One-line description of a failure, prefixed with the file it concerns."""
    if isinstance(error, AutodocError):
        source = error.details.get("file")
        if source:
            return f"{source}: {error.message}"
        return error.message
    return str(error)


def format_error_list(errors: Sequence[BaseException]) -> str:
    """Format several errors as a bulleted block, one failure per line."""
    points = "".join(f"\t* {describe_failure(err)}\n" for err in errors)
    noun = "error" if len(errors) == 1 else "errors"
    return f"{len(errors)} {noun} occurred:\n{points}\n"


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI main functions that provides unified error handling.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - AutodocError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except AutodocError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=int(e.exit_code),
                        **e.details,
                    )
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=int(ExitCode.UNKNOWN_ERROR),
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: AutodocError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
