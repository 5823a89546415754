"""Tests for single-file documentation generation."""

from pathlib import Path

import pytest

from grafana_autodoc.core.errors import DashboardIOError, DeserializationError, ParseError
from grafana_autodoc.dashboards import Dashboard
from grafana_autodoc.docs import (
    build_document,
    create_documentation_from_file,
    escape_newlines,
    load_dashboard,
    output_path_for,
)

ROUND_TRIP_JSON = (
    '{"title":"T","description":"D","panels":[{"title":"P1","description":"d1",'
    '"type":"graph","targets":[{"expr":"up"}]}]}'
)


class TestLoadDashboard:
    """Tests for load_dashboard."""

    def test_valid_json(self):
        assert load_dashboard(ROUND_TRIP_JSON).title == "T"

    def test_empty_bytes(self):
        with pytest.raises(DeserializationError, match="error unmarshalling dashboard json"):
            load_dashboard(b"", "empty.json")

    def test_source_recorded_in_details(self):
        with pytest.raises(DeserializationError) as excinfo:
            load_dashboard(b"{not json", "broken.json")
        assert excinfo.value.details["file"] == "broken.json"

    def test_non_object_document(self):
        with pytest.raises(DeserializationError):
            load_dashboard(b"[]")


class TestBuildDocument:
    """Tests for build_document."""

    def test_rows_are_skipped(self, sample_dashboard):
        document = build_document(Dashboard.model_validate(sample_dashboard))
        assert [p.title for p in document.panels] == ["Requests", "Errors"]

    def test_metrics_per_panel(self, sample_dashboard):
        document = build_document(Dashboard.model_validate(sample_dashboard))
        assert document.panels[0].metrics == ["http_requests_total"]
        assert document.panels[1].metrics == ["http_errors_total", "http_requests_total"]
        assert document.metric_count == 2

    def test_nested_row_child_is_skipped(self):
        dashboard = Dashboard.model_validate(
            {"panels": [{"title": "R", "type": "row", "panels": [{"title": "inner row", "type": "row"}, {"title": "p", "type": "graph"}]}]}
        )
        assert [p.title for p in build_document(dashboard).panels] == ["p"]

    def test_irregular_row_panel_is_rendered(self):
        dashboard = Dashboard.model_validate(
            {"panels": [{"title": "top", "type": "graph", "panels": [{"title": "child", "type": "stat"}]}]}
        )
        assert [p.title for p in build_document(dashboard).panels] == ["child", "top"]

    def test_description_newlines_escaped(self):
        dashboard = Dashboard.model_validate({"panels": [{"title": "p", "description": "line1\nline2"}]})
        assert build_document(dashboard).panels[0].description == "line1\\nline2"

    def test_dashboard_description_kept(self):
        dashboard = Dashboard.model_validate({"title": "T", "description": "a\nb"})
        assert build_document(dashboard).description == "a\nb"

    def test_skipped_row_targets_are_not_parsed(self):
        dashboard = Dashboard.model_validate(
            {"panels": [{"title": "R", "type": "row", "targets": [{"expr": "rate(foo)"}]}]}
        )
        assert build_document(dashboard).panels == []

    def test_bad_expression_fails(self):
        dashboard = Dashboard.model_validate({"panels": [{"title": "p", "targets": [{"expr": "sum("}]}]})
        with pytest.raises(ParseError):
            build_document(dashboard)


class TestOutputPath:
    """Tests for output_path_for."""

    def test_json_suffix_replaced(self, tmp_path):
        assert output_path_for("dash/api.json", tmp_path) == tmp_path / "api.md"

    def test_suffix_removal_is_case_sensitive(self, tmp_path):
        assert output_path_for("API.JSON", tmp_path) == tmp_path / "API.JSON.md"

    def test_inner_json_kept(self, tmp_path):
        assert output_path_for("a.json.json", tmp_path) == tmp_path / "a.json.md"


class TestEscapeNewlines:
    def test_escape(self):
        assert escape_newlines("a\nb\n") == "a\\nb\\n"


class TestCreateDocumentationFromFile:
    """Tests for create_documentation_from_file."""

    def test_round_trip(self, write_dashboard, output_dir):
        source = write_dashboard("overview.json", ROUND_TRIP_JSON)

        result = create_documentation_from_file(source, output_dir)

        assert result == output_dir / "overview.md"
        content = result.read_text()
        assert content.startswith("# T\nD\n")
        assert "| P1 | d1 | graph | `up`<br> |" in content
        assert not content.endswith("\n")

    def test_empty_file_writes_nothing(self, write_dashboard, output_dir):
        source = write_dashboard("empty.json", b"")

        with pytest.raises(DeserializationError):
            create_documentation_from_file(source, output_dir)

        assert list(output_dir.iterdir()) == []

    def test_parse_error_names_the_file(self, write_dashboard, output_dir):
        source = write_dashboard("bad.json", {"panels": [{"title": "p", "targets": [{"expr": "rate(foo)"}]}]})

        with pytest.raises(ParseError) as excinfo:
            create_documentation_from_file(source, output_dir)

        assert excinfo.value.details["file"] == str(source)
        assert excinfo.value.details["expr"] == "rate(foo)"
        assert not (output_dir / "bad.md").exists()

    def test_missing_file(self, tmp_path, output_dir):
        with pytest.raises(DashboardIOError, match="error reading dashboard file"):
            create_documentation_from_file(tmp_path / "missing.json", output_dir)

    def test_missing_output_directory(self, write_dashboard, tmp_path):
        source = write_dashboard("overview.json", ROUND_TRIP_JSON)

        with pytest.raises(DashboardIOError, match="error writing the corresponding markdown file"):
            create_documentation_from_file(source, tmp_path / "does-not-exist")

    def test_existing_output_overwritten(self, write_dashboard, output_dir):
        source = write_dashboard("overview.json", ROUND_TRIP_JSON)
        (output_dir / "overview.md").write_text("stale content that is longer than the new document" * 10)

        create_documentation_from_file(Path(source), output_dir)

        assert "stale" not in (output_dir / "overview.md").read_text()
