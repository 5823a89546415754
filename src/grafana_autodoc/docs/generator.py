"""
Generate markdown documentation for a single dashboard file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import ValidationError

from grafana_autodoc.core.errors import (
    DashboardIOError,
    DeserializationError,
    ParseError,
    RenderError,
)
from grafana_autodoc.dashboards import Dashboard, extract_panel_metrics
from grafana_autodoc.docs.models import DocumentModel, PanelDocument
from grafana_autodoc.docs.renderer import MarkdownRenderer, get_renderer

logger = structlog.get_logger()

DASHBOARD_SUFFIX = ".json"
MARKDOWN_SUFFIX = ".md"


def load_dashboard(data: Union[bytes, str], source: str = "") -> Dashboard:
    """
    Deserialize a dashboard JSON document.

    Raises:
        DeserializationError: If the document is not valid dashboard JSON
    """
    try:
        return Dashboard.model_validate_json(data)
    except ValidationError as e:
        details = {"file": source} if source else {}
        raise DeserializationError(
            f"error unmarshalling dashboard json: {_summarize(e)}",
            details=details,
        ) from e


def _summarize(error: ValidationError) -> str:
    """Condense a pydantic validation error to its first problem."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def escape_newlines(text: str) -> str:
    return text.replace("\n", "\\n")


def build_document(dashboard: Dashboard) -> DocumentModel:
    """
    Build the render model for a dashboard.

    Row panels are skipped; every other panel becomes one table row with
    the metrics its targets query.

    Raises:
        ParseError: If any target expression of a rendered panel is malformed
    """
    panels = []
    for panel in dashboard.get_panels():
        if panel.is_row:
            continue
        panels.append(
            PanelDocument(
                title=panel.title,
                description=escape_newlines(panel.description),
                type=panel.type,
                metrics=extract_panel_metrics(panel),
            )
        )
    return DocumentModel(
        title=dashboard.title,
        description=dashboard.description,
        panels=panels,
    )


def output_path_for(dashboard_file: Union[str, Path], output_dir: Union[str, Path]) -> Path:
    """Markdown path for a dashboard: same base name, ``.json`` replaced by ``.md``."""
    name = Path(dashboard_file).name.removesuffix(DASHBOARD_SUFFIX)
    return Path(output_dir) / f"{name}{MARKDOWN_SUFFIX}"


def create_documentation_from_file(
    dashboard_file: Union[str, Path],
    output_dir: Union[str, Path],
    renderer: Optional[MarkdownRenderer] = None,
) -> Path:
    """
    Generate the markdown documentation for one dashboard file.

    The document is fully rendered before anything is written, so a
    dashboard that fails to load or parse leaves no output file behind.

    Args:
        dashboard_file: Path to the Grafana dashboard JSON file
        output_dir: Directory the markdown file is written to
        renderer: Renderer to use (defaults to the packaged template)

    Returns:
        Path of the written markdown file

    Raises:
        DashboardIOError: If the dashboard can't be read or the output written
        DeserializationError: If the dashboard JSON is malformed
        ParseError: If a panel query is not valid PromQL
        RenderError: If the markdown template fails
    """
    dashboard_file = Path(dashboard_file)
    log = logger.bind(file=str(dashboard_file))
    log.debug("processing_file")

    try:
        data = dashboard_file.read_bytes()
    except OSError as e:
        log.error("dashboard_read_failed", error=str(e))
        raise DashboardIOError(
            f"error reading dashboard file: {e}",
            details={"file": str(dashboard_file)},
        ) from e

    try:
        dashboard = load_dashboard(data, str(dashboard_file))
    except DeserializationError as e:
        log.error("dashboard_unmarshal_failed", error=e.message)
        raise

    try:
        document = build_document(dashboard)
    except ParseError as e:
        e.details["file"] = str(dashboard_file)
        raise

    try:
        content = (renderer or get_renderer()).render_bytes(document)
    except RenderError as e:
        e.details["file"] = str(dashboard_file)
        raise

    output_file = output_path_for(dashboard_file, output_dir)
    try:
        output_file.write_bytes(content)
    except OSError as e:
        log.error("markdown_write_failed", error=str(e), markdown_file=str(output_file))
        raise DashboardIOError(
            f"error writing the corresponding markdown file: {e}",
            details={"file": str(dashboard_file), "markdown_file": str(output_file)},
        ) from e

    log.info(
        "documentation_written",
        markdown_file=str(output_file),
        panels=len(document.panels),
        metrics=document.metric_count,
    )
    return output_file
