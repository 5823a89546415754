"""
grafana-autodoc: markdown documentation for Grafana dashboards.

Reads dashboard JSON, extracts the metrics each panel's PromQL queries use,
and writes one markdown table per dashboard.
"""

__version__ = "0.1.0"
