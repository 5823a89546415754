"""
Markdown documentation for Grafana dashboards.
"""

from grafana_autodoc.docs.generator import (
    build_document,
    create_documentation_from_file,
    escape_newlines,
    load_dashboard,
    output_path_for,
)
from grafana_autodoc.docs.models import DocumentModel, PanelDocument
from grafana_autodoc.docs.renderer import TEMPLATE_NAME, MarkdownRenderer, get_renderer

__all__ = [
    "DocumentModel",
    "PanelDocument",
    "MarkdownRenderer",
    "TEMPLATE_NAME",
    "get_renderer",
    "build_document",
    "create_documentation_from_file",
    "escape_newlines",
    "load_dashboard",
    "output_path_for",
]
