"""
Label matcher regexes.

Prometheus matchers use RE2 syntax. Python's ``re`` rejects a few RE2
forms that are common in dashboards, so patterns are rewritten before
compiling. The rewrites keep which strings a pattern can match as a whole
where Python has an equivalent, and otherwise keep the shape of the pattern
(how many characters each piece consumes), which is what the empty-match
check on selectors relies on.

Rewrites:
    \\Q...\\E            escaped literal text
    \\z                  \\Z
    \\pL \\p{Greek}       any character (\\w inside a class)
    \\PL \\P{Greek}       any character (\\W inside a class)
    [[:alpha:]]         [\\w], negated [:^alpha:] becomes \\W
    (?U) (?U:...)       ungreedy flag dropped
    a(?i)b              flags set after the start are dropped
"""

from __future__ import annotations

import re
from functools import lru_cache

_FLAG_GROUP_RE = re.compile(r"\(\?([a-zA-Z]*)(?:-([a-zA-Z]*))?([:)])")


def translate_re2(pattern: str) -> str:
    """Rewrite RE2-only syntax into an equivalent Python ``re`` pattern."""
    out = []
    i = 0
    n = len(pattern)
    in_class = False

    while i < n:
        ch = pattern[i]

        if ch == "\\":
            if i + 1 >= n:
                out.append(ch)
                break
            nxt = pattern[i + 1]
            if nxt == "Q":
                end = pattern.find("\\E", i + 2)
                literal = pattern[i + 2 :] if end == -1 else pattern[i + 2 : end]
                out.append(re.escape(literal))
                i = n if end == -1 else end + 2
            elif nxt in "pP":
                if i + 2 < n and pattern[i + 2] == "{":
                    close = pattern.find("}", i + 3)
                    if close == -1:
                        out.append(pattern[i:])
                        break
                    i = close + 1
                elif i + 2 < n:
                    i += 3
                else:
                    out.append(pattern[i:])
                    break
                if in_class:
                    out.append("\\w" if nxt == "p" else "\\W")
                else:
                    out.append(".")
            elif nxt == "z":
                out.append("\\Z")
                i += 2
            else:
                out.append(pattern[i : i + 2])
                i += 2
            continue

        if in_class:
            if pattern.startswith("[:", i):
                close = pattern.find(":]", i + 2)
                if close != -1:
                    negated = pattern[i + 2 : i + 3] == "^"
                    out.append("\\W" if negated else "\\w")
                    i = close + 2
                    continue
            if ch == "[":
                out.append("\\[")
            else:
                if ch == "]":
                    in_class = False
                out.append(ch)
            i += 1
            continue

        if ch == "[":
            in_class = True
            out.append(ch)
            i += 1
            if i < n and pattern[i] == "^":
                out.append("^")
                i += 1
            # A leading ] is a literal member of the class
            if i < n and pattern[i] == "]":
                out.append("\\]")
                i += 1
            continue

        if ch == "(":
            match = _FLAG_GROUP_RE.match(pattern, i)
            if match:
                on = match.group(1).replace("U", "")
                off = (match.group(2) or "").replace("U", "")
                if match.group(3) == ":":
                    out.append(f"(?{on}-{off}:" if off else f"(?{on}:")
                elif not out and on and not off:
                    out.append(f"(?{on})")
                i = match.end()
                continue

        out.append(ch)
        i += 1

    return "".join(out)


@lru_cache(maxsize=1024)
def compile_matcher_regex(pattern: str) -> "re.Pattern[str]":
    """
    Compile a label regex the way Prometheus evaluates it.

    Raises:
        re.error: If the pattern is malformed
    """
    return re.compile(translate_re2(pattern), re.DOTALL)


def full_match(pattern: str, value: str) -> bool:
    """Return True if the regex matches the whole value."""
    return compile_matcher_regex(pattern).fullmatch(value) is not None
