"""
Terminal output helpers built on rich.

Environment handling:
- Respects NO_COLOR and FORCE_COLOR environment variables
- Falls back to plain text when stdout is not a terminal
- Errors go to stderr so piped stdout stays clean
"""

from __future__ import annotations

import os

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

# Nord color palette (https://www.nordtheme.com/)
AUTODOC_THEME = Theme(
    {
        "info": "#88C0D0",  # Nord frost - light blue
        "success": "#A3BE8C",  # Nord aurora - green
        "warning": "#EBCB8B",  # Nord aurora - yellow
        "error": "#BF616A bold",  # Nord aurora - red
    }
)


def _make_console(stderr: bool = False) -> Console:
    return Console(
        theme=AUTODOC_THEME,
        stderr=stderr,
        soft_wrap=True,
        force_terminal=os.environ.get("FORCE_COLOR") is not None,
        no_color=os.environ.get("NO_COLOR") is not None,
    )


console = _make_console()
err_console = _make_console(stderr=True)


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]✓ {escape(message)}[/success]", highlight=False)


def error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]✗ {escape(message)}[/error]", highlight=False)


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[warning]⚠ {escape(message)}[/warning]", highlight=False)


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]ℹ {escape(message)}[/info]", highlight=False)
