"""
Batch documentation of many dashboards.

Every dashboard file is processed as an independent task. The batch waits
for all of them, even after failures, and reports every failed file in one
BatchError.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional, Sequence, Union

import structlog

from grafana_autodoc.batch.resolver import InputMode, resolve_inputs
from grafana_autodoc.config import Settings
from grafana_autodoc.core.errors import AutodocError, BatchError, describe_failure
from grafana_autodoc.docs import MarkdownRenderer, create_documentation_from_file, get_renderer

logger = structlog.get_logger()


async def process_files(
    files: Sequence[Union[str, Path]],
    output_dir: Union[str, Path],
    renderer: Optional[MarkdownRenderer] = None,
) -> List[Path]:
    """
    Document every file concurrently.

    Each file runs in a worker thread. Failures are collected rather than
    raised, so one bad dashboard never stops its siblings.

    Args:
        files: Dashboard files to document (may be empty)
        output_dir: Directory the markdown files are written to
        renderer: Renderer shared by all tasks

    Returns:
        Paths of the markdown files written, in input order

    Raises:
        BatchError: If one or more files failed
    """
    if not files:
        return []

    renderer = renderer or get_renderer()
    tasks = [
        asyncio.to_thread(create_documentation_from_file, file, output_dir, renderer)
        for file in files
    ]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    written: List[Path] = []
    errors: List[BaseException] = []
    for file, result in zip(files, results, strict=True):
        if isinstance(result, AutodocError):
            errors.append(result)
        elif isinstance(result, Exception):
            wrapped = AutodocError(f"unexpected error: {result}", details={"file": str(file)})
            wrapped.__cause__ = result
            errors.append(wrapped)
        elif isinstance(result, BaseException):
            raise result
        else:
            written.append(result)

    for error in errors:
        logger.warning("file_failed", error_type=type(error).__name__, reason=describe_failure(error))

    if errors:
        raise BatchError(errors)
    return written


def process_input(
    input_spec: str,
    output_dir: Union[str, Path],
    renderer: Optional[MarkdownRenderer] = None,
) -> List[Path]:
    """
    Resolve an input value and document every dashboard it names.

    Returns:
        Paths of the markdown files written

    Raises:
        PatternError: If the input is a malformed glob pattern
        InvalidInputError: If the input can't be resolved
        BatchError: If one or more dashboards failed
    """
    resolved = resolve_inputs(input_spec)

    if resolved.is_empty:
        if resolved.mode == InputMode.GLOB:
            logger.warning("no_files_matched", pattern=input_spec)
        else:
            logger.warning("no_json_files_in_directory", directory=input_spec)
        return []

    logger.info("found_files", mode=resolved.mode.value, file_count=len(resolved.files))

    try:
        written = asyncio.run(process_files(resolved.files, output_dir, renderer))
    except BatchError as e:
        logger.error(
            "batch_failed",
            failed=len(e.errors),
            succeeded=len(resolved.files) - len(e.errors),
        )
        raise

    logger.info("batch_complete", mode=resolved.mode.value, written=len(written))
    return written


def process(settings: Settings) -> List[Path]:
    """Run a documentation batch for the given settings."""
    settings.validate_for_run()
    return process_input(settings.input, settings.output)
