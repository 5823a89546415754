"""
Resolve the ``--input`` value to the dashboard files it names.

The input is tried as a glob pattern first, then as a single file, then as
a directory.

Glob patterns use ``\\`` escapes and ``[^...]`` negation (``[!...]`` is
accepted too). They are validated first, then rewritten for the ``glob``
module.
"""

from __future__ import annotations

import glob
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Union

import structlog

from grafana_autodoc.core.errors import DashboardIOError, InvalidInputError, PatternError

logger = structlog.get_logger()

GLOB_CHARACTERS = "*?[]{}"
JSON_EXTENSION = ".json"


class InputMode(str, Enum):
    """How the input value was interpreted."""

    GLOB = "glob"
    FILE = "file"
    DIRECTORY = "directory"


@dataclass
class ResolvedInput:
    """Dashboard files selected by an input value."""

    mode: InputMode
    files: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.files


def is_glob_pattern(value: str) -> bool:
    """Return True if the value contains any glob metacharacter."""
    return any(ch in value for ch in GLOB_CHARACTERS)


def has_json_extension(path: Union[str, Path]) -> bool:
    """Case-insensitive check for a ``.json`` extension."""
    return Path(path).name.lower().endswith(JSON_EXTENSION)


def validate_glob_pattern(pattern: str) -> None:
    """
    Check character classes and escapes of a glob pattern.

    Raises:
        PatternError: On an unterminated or empty ``[...]`` class, a class
            range missing an end point, or a trailing backslash
    """
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\":
            if i + 1 >= n:
                raise PatternError(
                    f"syntax error in pattern: trailing escape in {pattern!r}",
                    details={"pattern": pattern},
                )
            i += 2
        elif ch == "[":
            i = _scan_class(pattern, i + 1)
        else:
            i += 1


def _scan_class(pattern: str, i: int) -> int:
    """Validate a character class starting after ``[``; return the index after ``]``."""

    def bad() -> PatternError:
        return PatternError(
            f"syntax error in pattern: malformed character class in {pattern!r}",
            details={"pattern": pattern},
        )

    def class_char(j: int) -> int:
        if j >= len(pattern) or pattern[j] in "-]":
            raise bad()
        if pattern[j] == "\\":
            if j + 1 >= len(pattern):
                raise bad()
            return j + 2
        return j + 1

    n = len(pattern)
    if i < n and pattern[i] in "^!":
        i += 1
    items = 0
    while True:
        if i >= n:
            raise bad()
        if pattern[i] == "]" and items > 0:
            return i + 1
        i = class_char(i)
        if i < n and pattern[i] == "-":
            i = class_char(i + 1)
        items += 1


def to_python_glob(pattern: str) -> str:
    """
    Rewrite a validated pattern into the syntax of the ``glob`` module.

    Backslash escapes become one-character classes (``\\*`` is ``[*]``) and
    ``[^...]`` negation becomes ``[!...]``. Inside a class an escaped
    character is a plain member, and a ``]`` member is moved to the front,
    the only place ``glob`` accepts it.
    """
    out: List[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\" and i + 1 < n:
            literal = pattern[i + 1]
            out.append(f"[{literal}]" if literal in "*?[" else literal)
            i += 2
        elif ch == "[":
            i += 1
            negate = ""
            if i < n and pattern[i] in "^!":
                negate = "!"
                i += 1
            members: List[str] = []
            trailing = ""
            while i < n and pattern[i] != "]":
                if pattern[i] == "\\" and i + 1 < n:
                    literal = pattern[i + 1]
                    # An escaped - is a member, never a range
                    if literal == "-":
                        trailing = "-"
                    else:
                        members.append(literal)
                    i += 2
                else:
                    members.append(pattern[i])
                    i += 1
            i += 1
            if "]" in members:
                members.remove("]")
                members.insert(0, "]")
            if not negate and members and members[0] == "!":
                members.append(members.pop(0))
            out.append(f"[{negate}{''.join(members)}{trailing}]")
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _resolve_glob(pattern: str) -> ResolvedInput:
    validate_glob_pattern(pattern)
    resolved = ResolvedInput(mode=InputMode.GLOB)
    for match in sorted(glob.glob(to_python_glob(pattern), include_hidden=True)):
        path = Path(match)
        if path.is_dir() or not has_json_extension(path):
            logger.debug("skipping_non_json_file", file=match)
            resolved.skipped.append(path)
            continue
        resolved.files.append(path)
    return resolved


def _resolve_directory(directory: Path) -> ResolvedInput:
    resolved = ResolvedInput(mode=InputMode.DIRECTORY)
    try:
        entries = sorted(directory.iterdir())
    except OSError as e:
        raise DashboardIOError(
            f"error retrieving files from directory: {e}",
            details={"directory": str(directory)},
        ) from e
    for entry in entries:
        if entry.is_file() and has_json_extension(entry):
            resolved.files.append(entry)
        else:
            resolved.skipped.append(entry)
    return resolved


def resolve_inputs(input_spec: str) -> ResolvedInput:
    """
    Resolve an input value to the dashboard files to process.

    Precedence:
        1. Glob pattern (contains any of ``* ? [ ] { }``); zero matches is fine
        2. Existing file; must have a ``.json`` extension
        3. Existing directory; its immediate ``.json`` files, non-recursive

    Raises:
        PatternError: If the glob pattern is malformed
        InvalidInputError: If the input is none of the above, or is a
            file without a ``.json`` extension
        DashboardIOError: If the directory can't be listed
    """
    if is_glob_pattern(input_spec):
        return _resolve_glob(input_spec)

    path = Path(input_spec)
    if path.exists() and not path.is_dir():
        if not has_json_extension(path):
            raise InvalidInputError(
                "input file must be a json file",
                details={"input": input_spec},
            )
        return ResolvedInput(mode=InputMode.FILE, files=[path])

    if path.is_dir():
        return _resolve_directory(path)

    raise InvalidInputError(
        "input path is not a valid file, directory, or glob pattern",
        details={"input": input_spec},
    )
