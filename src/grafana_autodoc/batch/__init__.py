"""
Batch processing of dashboard files.
"""

from grafana_autodoc.batch.processor import process, process_files, process_input
from grafana_autodoc.batch.resolver import (
    GLOB_CHARACTERS,
    InputMode,
    ResolvedInput,
    has_json_extension,
    is_glob_pattern,
    resolve_inputs,
    to_python_glob,
    validate_glob_pattern,
)

__all__ = [
    "GLOB_CHARACTERS",
    "InputMode",
    "ResolvedInput",
    "has_json_extension",
    "is_glob_pattern",
    "process",
    "process_files",
    "process_input",
    "resolve_inputs",
    "to_python_glob",
    "validate_glob_pattern",
]
