"""
Grafana dashboard models and panel metric extraction.
"""

from grafana_autodoc.dashboards.extractor import (
    PLACEHOLDER_DURATION,
    RANGE_PLACEHOLDERS,
    extract_panel_metrics,
    substitute_placeholders,
)
from grafana_autodoc.dashboards.models import (
    ROW_PANEL_TYPE,
    Dashboard,
    Datasource,
    Link,
    Panel,
    RowPanel,
    Target,
)

__all__ = [
    "Dashboard",
    "Datasource",
    "Link",
    "Panel",
    "RowPanel",
    "Target",
    "ROW_PANEL_TYPE",
    "PLACEHOLDER_DURATION",
    "RANGE_PLACEHOLDERS",
    "extract_panel_metrics",
    "substitute_placeholders",
]
