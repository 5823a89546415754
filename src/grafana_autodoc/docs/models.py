"""
Data consumed by the markdown template.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PanelDocument:
    """One table row of the generated documentation."""

    title: str
    description: str  # newlines escaped so the row stays on one line
    type: str
    metrics: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DocumentModel:
    """Everything the markdown template renders for one dashboard."""

    title: str
    description: str
    panels: list[PanelDocument] = field(default_factory=list)

    @property
    def metric_count(self) -> int:
        """Number of distinct metrics across all panels."""
        return len({metric for panel in self.panels for metric in panel.metrics})
