"""Tests for input resolution and batch processing."""

import pytest

from grafana_autodoc.batch import (
    InputMode,
    has_json_extension,
    is_glob_pattern,
    process,
    process_files,
    process_input,
    resolve_inputs,
    to_python_glob,
    validate_glob_pattern,
)
from grafana_autodoc.config import Settings
from grafana_autodoc.core.errors import (
    AutodocError,
    BatchError,
    ConfigurationError,
    DeserializationError,
    ExitCode,
    InvalidInputError,
    ParseError,
    PatternError,
)

VALID_DASHBOARD = {"title": "T", "panels": [{"title": "p", "type": "graph", "targets": [{"expr": "up"}]}]}
BAD_QUERY_DASHBOARD = {"title": "T", "panels": [{"title": "p", "targets": [{"expr": "rate(foo)"}]}]}


class TestInputClassification:
    """Tests for glob and extension helpers."""

    @pytest.mark.parametrize("value", ["*.json", "dash?.json", "[ab].json", "{a,b}.json", "dir/*"])
    def test_glob_patterns(self, value):
        assert is_glob_pattern(value)

    @pytest.mark.parametrize("value", ["dash.json", "dashboards", "./a/b.json"])
    def test_plain_paths(self, value):
        assert not is_glob_pattern(value)

    @pytest.mark.parametrize("name,expected", [("a.json", True), ("a.JSON", True), ("a.json.bak", False), ("json", False)])
    def test_json_extension(self, name, expected):
        assert has_json_extension(name) is expected

    @pytest.mark.parametrize("pattern", ["[", "dash[.json", "[]", "[a-].json", "trailing\\"])
    def test_malformed_patterns(self, pattern):
        with pytest.raises(PatternError, match="syntax error in pattern"):
            validate_glob_pattern(pattern)

    @pytest.mark.parametrize("pattern", ["*.json", "[a-z]*.json", "[!x].json", "a\\*.json"])
    def test_wellformed_patterns(self, pattern):
        validate_glob_pattern(pattern)

    @pytest.mark.parametrize(
        "pattern,expected",
        [
            ("*.json", "*.json"),
            ("a\\*b.json", "a[*]b.json"),
            ("a\\.json", "a.json"),
            ("[^x].json", "[!x].json"),
            ("[!x].json", "[!x].json"),
            ("[a\\]].json", "[]a].json"),
            ("[a\\-z].json", "[az-].json"),
            ("[\\!a].json", "[a!].json"),
        ],
    )
    def test_glob_module_syntax(self, pattern, expected):
        assert to_python_glob(pattern) == expected


class TestResolveInputs:
    """Tests for resolve_inputs."""

    def test_glob_filters_non_json(self, tmp_path, write_dashboard):
        write_dashboard("b.json", VALID_DASHBOARD)
        write_dashboard("a.json", VALID_DASHBOARD)
        write_dashboard("notes.txt", "hello")

        resolved = resolve_inputs(str(tmp_path / "*"))

        assert resolved.mode == InputMode.GLOB
        assert [p.name for p in resolved.files] == ["a.json", "b.json"]
        assert [p.name for p in resolved.skipped] == ["notes.txt"]

    def test_glob_skips_directories(self, tmp_path, write_dashboard):
        (tmp_path / "nested.json").mkdir()
        write_dashboard("a.json", VALID_DASHBOARD)

        resolved = resolve_inputs(str(tmp_path / "*.json"))

        assert [p.name for p in resolved.files] == ["a.json"]

    def test_glob_with_no_matches(self, tmp_path):
        resolved = resolve_inputs(str(tmp_path / "*.json"))
        assert resolved.mode == InputMode.GLOB
        assert resolved.is_empty

    def test_unbalanced_bracket(self, tmp_path):
        with pytest.raises(PatternError):
            resolve_inputs(str(tmp_path / "[*.json"))

    def test_caret_negation(self, tmp_path, write_dashboard):
        write_dashboard("a.json", VALID_DASHBOARD)
        write_dashboard("x.json", VALID_DASHBOARD)

        resolved = resolve_inputs(str(tmp_path / "[^x].json"))

        assert [p.name for p in resolved.files] == ["a.json"]

    def test_escaped_wildcard_is_literal(self, tmp_path, write_dashboard):
        write_dashboard("a*b.json", VALID_DASHBOARD)
        write_dashboard("axb.json", VALID_DASHBOARD)

        resolved = resolve_inputs(str(tmp_path) + "/a\\*b.json")

        assert [p.name for p in resolved.files] == ["a*b.json"]

    def test_single_file(self, write_dashboard):
        path = write_dashboard("dash.json", VALID_DASHBOARD)
        resolved = resolve_inputs(str(path))
        assert resolved.mode == InputMode.FILE
        assert resolved.files == [path]

    def test_single_file_uppercase_extension(self, write_dashboard):
        path = write_dashboard("DASH.JSON", VALID_DASHBOARD)
        assert resolve_inputs(str(path)).files == [path]

    def test_single_non_json_file(self, write_dashboard):
        path = write_dashboard("x.txt", "hello")
        with pytest.raises(InvalidInputError, match="input file must be a json file"):
            resolve_inputs(str(path))

    def test_directory_is_not_recursive(self, tmp_path, write_dashboard):
        write_dashboard("a.json", VALID_DASHBOARD)
        write_dashboard("deep.json", VALID_DASHBOARD, directory=tmp_path / "sub")
        write_dashboard("readme.md", "# docs")

        resolved = resolve_inputs(str(tmp_path))

        assert resolved.mode == InputMode.DIRECTORY
        assert [p.name for p in resolved.files] == ["a.json"]

    def test_missing_path(self, tmp_path):
        with pytest.raises(InvalidInputError, match="not a valid file, directory, or glob pattern"):
            resolve_inputs(str(tmp_path / "missing"))


class TestProcessFiles:
    """Tests for the concurrent batch."""

    @pytest.mark.asyncio
    async def test_empty_batch(self, output_dir):
        assert await process_files([], output_dir) == []

    @pytest.mark.asyncio
    async def test_all_valid(self, write_dashboard, output_dir):
        files = [write_dashboard(f"d{i}.json", VALID_DASHBOARD) for i in range(5)]

        written = await process_files(files, output_dir)

        assert [p.name for p in written] == [f"d{i}.md" for i in range(5)]
        assert sorted(p.name for p in output_dir.iterdir()) == [f"d{i}.md" for i in range(5)]

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_siblings(self, write_dashboard, output_dir):
        good = [write_dashboard(f"good{i}.json", VALID_DASHBOARD) for i in range(3)]
        bad = [
            write_dashboard("empty.json", b""),
            write_dashboard("query.json", BAD_QUERY_DASHBOARD),
        ]

        with pytest.raises(BatchError) as excinfo:
            await process_files(bad[:1] + good + bad[1:], output_dir)

        error = excinfo.value
        assert len(error.errors) == 2
        assert isinstance(error.errors[0], DeserializationError)
        assert isinstance(error.errors[1], ParseError)
        assert error.message.startswith("2 errors occurred:\n")
        assert f"\t* {bad[0]}: " in error.message
        assert f"\t* {bad[1]}: " in error.message
        assert sorted(p.name for p in output_dir.iterdir()) == ["good0.md", "good1.md", "good2.md"]
        assert error.exit_code == ExitCode.PROCESSING_ERROR

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_wrapped(self, write_dashboard, output_dir, monkeypatch):
        path = write_dashboard("a.json", VALID_DASHBOARD)

        def boom(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr("grafana_autodoc.batch.processor.create_documentation_from_file", boom)

        with pytest.raises(BatchError) as excinfo:
            await process_files([path], output_dir)

        wrapped = excinfo.value.errors[0]
        assert type(wrapped) is AutodocError
        assert isinstance(wrapped.__cause__, RuntimeError)
        assert "disk on fire" in excinfo.value.message


class TestProcessInput:
    """Tests for process_input and process."""

    def test_glob_with_zero_matches_succeeds(self, tmp_path, output_dir):
        assert process_input(str(tmp_path / "*.json"), output_dir) == []
        assert list(output_dir.iterdir()) == []

    def test_empty_directory_succeeds(self, tmp_path, output_dir):
        empty = tmp_path / "empty"
        empty.mkdir()
        assert process_input(str(empty), output_dir) == []

    def test_directory_batch(self, tmp_path, write_dashboard, output_dir):
        dashboards = tmp_path / "dashboards"
        write_dashboard("a.json", VALID_DASHBOARD, directory=dashboards)
        write_dashboard("b.json", VALID_DASHBOARD, directory=dashboards)

        written = process_input(str(dashboards), output_dir)

        assert sorted(p.name for p in written) == ["a.md", "b.md"]

    def test_mixed_batch_reports_every_failure(self, tmp_path, write_dashboard, output_dir):
        dashboards = tmp_path / "dashboards"
        for i in range(2):
            write_dashboard(f"ok{i}.json", VALID_DASHBOARD, directory=dashboards)
        for i in range(3):
            write_dashboard(f"bad{i}.json", "{", directory=dashboards)

        with pytest.raises(BatchError) as excinfo:
            process_input(str(dashboards / "*.json"), output_dir)

        assert len(excinfo.value.errors) == 3
        assert excinfo.value.message.count("\t* ") == 3
        assert sorted(p.name for p in output_dir.iterdir()) == ["ok0.md", "ok1.md"]

    def test_malformed_glob_writes_nothing(self, tmp_path, write_dashboard, output_dir):
        write_dashboard("a.json", VALID_DASHBOARD)

        with pytest.raises(PatternError):
            process_input(str(tmp_path / "[a.json"), output_dir)

        assert list(output_dir.iterdir()) == []

    def test_process_settings(self, write_dashboard, output_dir):
        source = write_dashboard("a.json", VALID_DASHBOARD)

        written = process(Settings(input=str(source), output=output_dir))

        assert written == [output_dir / "a.md"]

    def test_process_requires_input(self, output_dir):
        with pytest.raises(ConfigurationError):
            process(Settings(input="", output=output_dir))
