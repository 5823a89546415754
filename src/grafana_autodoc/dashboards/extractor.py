"""
Extract the metrics each dashboard panel queries.
"""

from __future__ import annotations

import re
from typing import List

import structlog

from grafana_autodoc.core.errors import ParseError
from grafana_autodoc.dashboards.models import Panel
from grafana_autodoc.promql import extract_metric_names, unique

logger = structlog.get_logger()

# Grafana template variables that stand in for a range duration
PLACEHOLDER_DURATION = "1m"
RANGE_PLACEHOLDERS = ("$__range", "$__rate_interval", "$interval")

_PLACEHOLDER_RE = re.compile("|".join(re.escape(p) for p in RANGE_PLACEHOLDERS))


def substitute_placeholders(expr: str) -> str:
    """
    Replace Grafana range variables with a fixed duration.

    All placeholders are replaced in a single pass, so a replacement is never
    itself rewritten by another rule.
    """
    return _PLACEHOLDER_RE.sub(PLACEHOLDER_DURATION, expr)


def extract_panel_metrics(panel: Panel) -> List[str]:
    """
    Extract the unique metric names used by a panel's query targets.

    Metrics from every target are concatenated before de-duplication, so the
    first occurrence across the whole panel decides the order.

    Args:
        panel: Panel whose targets are parsed

    Returns:
        Metric names in first-occurrence order

    Raises:
        ParseError: If any target expression is malformed
    """
    metrics: List[str] = []
    for target in panel.targets:
        expr = substitute_placeholders(target.expr)
        try:
            metrics.extend(extract_metric_names(expr))
        except ParseError as e:
            logger.error(
                "promql_parse_failed",
                panel=panel.title,
                expr=expr,
                error=e.message,
            )
            raise
    return unique(metrics)
