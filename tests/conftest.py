"""Root test configuration."""

import json
import logging

import pytest
import structlog


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


SAMPLE_DASHBOARD = {
    "title": "API Overview",
    "description": "Request traffic for the API tier",
    "links": [{"type": "link", "title": "Runbook", "url": "https://example.com/runbook"}],
    "panels": [
        {
            "title": "Requests",
            "description": "Request rate",
            "type": "graph",
            "targets": [
                {"expr": "sum(rate(http_requests_total[$__rate_interval]))"},
            ],
        },
        {
            "title": "Backends",
            "type": "row",
            "panels": [
                {
                    "title": "Errors",
                    "description": "5xx responses",
                    "type": "stat",
                    "targets": [
                        {"expr": 'rate(http_errors_total{code=~"5.."}[5m])'},
                        {"expr": "http_requests_total"},
                    ],
                },
            ],
        },
    ],
}


@pytest.fixture
def sample_dashboard():
    """A dashboard with one top-level panel and one row holding a nested panel."""
    return json.loads(json.dumps(SAMPLE_DASHBOARD))


@pytest.fixture
def write_dashboard(tmp_path):
    """Factory writing dashboard JSON (dict or raw text) into tmp_path."""

    def _write(name, content, directory=None):
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        if isinstance(content, (dict, list)):
            path.write_text(json.dumps(content))
        elif isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
        return path

    return _write


@pytest.fixture
def output_dir(tmp_path):
    """Empty output directory for generated markdown."""
    path = tmp_path / "out"
    path.mkdir()
    return path
