"""
Command-line interface for grafana-autodoc.
"""
