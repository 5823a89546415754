"""
Markdown rendering of dashboard documentation.

The output layout is fixed by ``templates/dashboard.md.j2``: a title
heading, the description, and one table row per panel listing the metrics
it queries.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

import structlog
from jinja2 import Environment, PackageLoader, StrictUndefined, Template, TemplateError

from grafana_autodoc.core.errors import RenderError
from grafana_autodoc.docs.models import DocumentModel

logger = structlog.get_logger()

TEMPLATE_NAME = "dashboard.md.j2"


class MarkdownRenderer:
    """Render DocumentModel instances with the markdown template."""

    def __init__(self, template_source: Optional[str] = None):
        """
        Load the template.

        Args:
            template_source: Template text to use instead of the packaged
                template (mainly for tests)

        Raises:
            RenderError: If the template can't be loaded or has a syntax error
        """
        env = Environment(
            loader=PackageLoader("grafana_autodoc", "templates"),
            autoescape=False,
            undefined=StrictUndefined,
        )
        try:
            if template_source is None:
                self.template: Template = env.get_template(TEMPLATE_NAME)
            else:
                self.template = env.from_string(template_source)
        except TemplateError as e:
            logger.error("markdown_template_invalid", error=str(e))
            raise RenderError(f"error generating a new markdown template: {e}") from e

    def render(self, document: DocumentModel) -> str:
        """Render one dashboard's documentation."""
        try:
            return self.template.render(
                title=document.title,
                description=document.description,
                panels=document.panels,
            )
        except TemplateError as e:
            raise RenderError(f"error executing markdown template: {e}") from e

    def render_bytes(self, document: DocumentModel) -> bytes:
        return self.render(document).encode("utf-8")


@lru_cache
def get_renderer() -> MarkdownRenderer:
    """Get the shared renderer for the packaged template."""
    return MarkdownRenderer()
