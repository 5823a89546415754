"""
Command-line entry point for grafana-autodoc.

Usage:
    grafana-autodoc --input <file|directory|glob> [--output DIR] [--log-level LEVEL]
"""

from __future__ import annotations

import argparse
from typing import Sequence

from grafana_autodoc import __version__
from grafana_autodoc.batch import process
from grafana_autodoc.cli import ux
from grafana_autodoc.config import VALID_LOG_LEVELS, load_settings
from grafana_autodoc.core.errors import (
    AutodocError,
    BatchError,
    ExitCode,
    describe_failure,
    format_error_message,
    main_with_error_handling,
)
from grafana_autodoc.logging import bind_context, configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grafana-autodoc",
        description="Generate markdown documentation for Grafana dashboards",
    )
    parser.add_argument(
        "--input",
        help="Dashboard JSON file, directory of dashboards, or glob pattern",
    )
    parser.add_argument(
        "--output",
        help="Directory the markdown files are written to (default: current directory)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        help=f"Log verbosity: {VALID_LOG_LEVELS} (default: info)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


@main_with_error_handling()
def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(input=args.input, output=args.output, log_level=args.log_level)
    except AutodocError as e:
        ux.error(format_error_message(e))
        raise

    configure_logging(settings.log_level.logging_level)
    log = bind_context(
        input=settings.input,
        output=str(settings.output),
        log_level=settings.log_level.value,
    )
    log.info("processing_started")
    ux.info(f"Documenting dashboards from {settings.input}")

    try:
        written = process(settings)
    except BatchError as e:
        ux.error(f"{len(e.errors)} dashboard(s) failed")
        for failure in e.errors:
            ux.error(describe_failure(failure))
        raise
    except AutodocError as e:
        ux.error(format_error_message(e))
        raise

    if not written:
        ux.warning(f"No dashboards found for {settings.input}")
    else:
        ux.success(f"Documented {len(written)} dashboard(s) in {settings.output}")
    return ExitCode.SUCCESS


if __name__ == "__main__":
    raise SystemExit(main())
