"""
Extract metric names referenced by a PromQL expression.
"""

from __future__ import annotations

from typing import Iterable, List, TypeVar

from grafana_autodoc.promql.ast import Expr, VectorSelector, walk
from grafana_autodoc.promql.parser import parse_expr

T = TypeVar("T")


def extract_metrics(node: Expr) -> List[str]:
    """
    Collect the metric name of every vector selector in an expression tree.

    Selectors are visited depth-first, pre-order, so names come back in the
    order they are written. Duplicates are kept; callers de-duplicate once
    they have gathered every expression they care about.

    Args:
        node: Root of a parsed expression

    Returns:
        Metric names in traversal order
    """
    names = []
    for child in walk(node):
        if isinstance(child, VectorSelector):
            name = child.metric_name
            if name:
                names.append(name)
    return names


def extract_metric_names(expression: str) -> List[str]:
    """
    Parse a PromQL expression and return the metric names it references.

    Raises:
        ParseError: If the expression is malformed
    """
    return extract_metrics(parse_expr(expression))


def unique(items: Iterable[T]) -> List[T]:
    """Drop duplicates, keeping the first occurrence of each item."""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result
