"""Tokenizer for PromQL expressions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, List

from grafana_autodoc.core.errors import ParseError
from grafana_autodoc.promql.functions import AGGREGATORS


class TokenType(str, Enum):
    EOF = "end of input"
    IDENTIFIER = "identifier"
    METRIC_IDENTIFIER = "metric identifier"
    NUMBER = "number"
    DURATION = "duration"
    STRING = "string"
    OPERATOR = "operator"
    KEYWORD = "keyword"
    AGGREGATOR = "aggregator"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_BRACKET = "["
    RIGHT_BRACKET = "]"
    COMMA = ","
    COLON = ":"
    AT = "@"


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str
    pos: int
    value: Any = None

    def describe(self) -> str:
        """Token description for error messages."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type in (TokenType.IDENTIFIER, TokenType.METRIC_IDENTIFIER):
            return f'identifier "{self.text}"'
        if self.type == TokenType.NUMBER:
            return f'number "{self.text}"'
        if self.type == TokenType.DURATION:
            return f'duration "{self.text}"'
        if self.type == TokenType.STRING:
            return f"string {self.text}"
        if self.type == TokenType.AGGREGATOR:
            return f"aggregation {self.value}"
        return f'"{self.text}"'


KEYWORDS = {
    "by",
    "without",
    "on",
    "ignoring",
    "group_left",
    "group_right",
    "bool",
    "offset",
}

# Keyword-shaped binary operators
WORD_OPERATORS = {"and", "or", "unless", "atan2"}

SYMBOL_OPERATORS = ("==", "!=", "<=", ">=", "=~", "!~", "+", "-", "*", "/", "%", "^", "<", ">", "=")

PUNCTUATION = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    "[": TokenType.LEFT_BRACKET,
    "]": TokenType.RIGHT_BRACKET,
    ",": TokenType.COMMA,
    "@": TokenType.AT,
}

DURATION_UNITS = {
    "y": timedelta(days=365),
    "w": timedelta(weeks=1),
    "d": timedelta(days=1),
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
    "ms": timedelta(milliseconds=1),
}
_UNIT_ORDER = ["y", "w", "d", "h", "m", "s", "ms"]

_DURATION_RE = re.compile(r"(?:[0-9]+(?:ms|[smhdwy]))+(?![a-zA-Z0-9_])")
_DURATION_PART_RE = re.compile(r"([0-9]+)(ms|[smhdwy])")
_HEX_RE = re.compile(r"0[xX][0-9a-fA-F]+")
_NUMBER_RE = re.compile(r"(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_IDENTIFIER_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


def parse_duration(text: str) -> timedelta:
    """Parse a Prometheus duration such as ``5m`` or ``1h30m``.

    Units must appear from largest to smallest, each at most once.

    Raises:
        ValueError: If the text is not a valid duration
    """
    if not text or _DURATION_RE.fullmatch(text) is None:
        raise ValueError(f"not a valid duration string: {text!r}")
    total = timedelta()
    last_index = -1
    for amount, unit in _DURATION_PART_RE.findall(text):
        index = _UNIT_ORDER.index(unit)
        if index <= last_index:
            raise ValueError(f"not a valid duration string: {text!r}")
        last_index = index
        total += int(amount) * DURATION_UNITS[unit]
    return total


def unquote(expression: str, quoted: str, pos: int) -> str:
    """Resolve escape sequences of a quoted PromQL string literal."""
    quote = quoted[0]
    body = quoted[1:-1]
    if quote == "`":
        return body

    out: List[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        i += 1
        if i >= len(body):
            raise ParseError(expression, "invalid escape sequence at end of string", pos)
        esc = body[i]
        if esc in _SIMPLE_ESCAPES:
            if esc in "\"'" and esc != quote:
                raise ParseError(expression, f"unknown escape sequence \\{esc}", pos + i)
            out.append(_SIMPLE_ESCAPES[esc])
            i += 1
        elif esc in "xuU":
            width = {"x": 2, "u": 4, "U": 8}[esc]
            digits = body[i + 1 : i + 1 + width]
            if len(digits) != width or not all(c in "0123456789abcdefABCDEF" for c in digits):
                raise ParseError(expression, f"invalid escape sequence \\{esc}{digits}", pos + i)
            code = int(digits, 16)
            if code > 0x10FFFF:
                raise ParseError(expression, "escape sequence is an invalid Unicode code point", pos + i)
            out.append(chr(code))
            i += 1 + width
        elif esc in "01234567":
            digits = body[i : i + 3]
            if len(digits) != 3 or not all(c in "01234567" for c in digits):
                raise ParseError(expression, f"invalid octal escape sequence \\{digits}", pos + i)
            code = int(digits, 8)
            if code > 255:
                raise ParseError(expression, f"octal escape value > 255: {code}", pos + i)
            out.append(chr(code))
            i += 3
        else:
            raise ParseError(expression, f"unknown escape sequence \\{esc}", pos + i)
    return "".join(out)


class Lexer:
    """Split an expression into tokens.

    Colons are identifier characters (recording rule names such as
    ``job:requests:rate5m``) except inside brackets, where they separate the
    range and step of a subquery.
    """

    def __init__(self, expression: str):
        self.expression = expression
        self.pos = 0
        self.bracket_depth = 0
        self.brace_depth = 0
        self.paren_depth = 0

    def error(self, reason: str, pos: int | None = None) -> ParseError:
        return ParseError(self.expression, reason, self.pos if pos is None else pos)

    def tokens(self) -> List[Token]:
        result: List[Token] = []
        while True:
            token = self.next_token()
            result.append(token)
            if token.type == TokenType.EOF:
                break
        if self.paren_depth > 0:
            raise self.error("unclosed left parenthesis")
        if self.brace_depth > 0:
            raise self.error("unexpected end of input inside braces")
        if self.bracket_depth > 0:
            raise self.error("unclosed left bracket")
        return result

    def _skip_space_and_comments(self) -> None:
        text = self.expression
        while self.pos < len(text):
            ch = text[self.pos]
            if ch.isspace():
                self.pos += 1
            elif ch == "#":
                end = text.find("\n", self.pos)
                self.pos = len(text) if end == -1 else end
            else:
                break

    def next_token(self) -> Token:
        self._skip_space_and_comments()
        text = self.expression
        start = self.pos
        if start >= len(text):
            return Token(TokenType.EOF, "", start)

        ch = text[start]

        if ch in "\"'`":
            return self._lex_string(ch)

        if ch.isdigit() or (ch == "." and start + 1 < len(text) and text[start + 1].isdigit()):
            return self._lex_number_or_duration()

        if ch == ":" and self.bracket_depth > 0:
            self.pos += 1
            return Token(TokenType.COLON, ch, start)

        if ch.isalpha() or ch in "_:":
            return self._lex_identifier()

        if ch in PUNCTUATION:
            self.pos += 1
            self._track_nesting(ch, start)
            return Token(PUNCTUATION[ch], ch, start)

        for op in SYMBOL_OPERATORS:
            if text.startswith(op, start):
                self.pos += len(op)
                return Token(TokenType.OPERATOR, op, start, op)

        if ch == "!":
            raise self.error("unexpected character after '!'", start)
        raise self.error(f"unexpected character: {ch!r}", start)

    def _track_nesting(self, ch: str, pos: int) -> None:
        if ch == "(":
            self.paren_depth += 1
        elif ch == ")":
            self.paren_depth -= 1
            if self.paren_depth < 0:
                raise self.error("unexpected right parenthesis ')'", pos)
        elif ch == "{":
            if self.brace_depth > 0:
                raise self.error("unexpected left brace '{'", pos)
            self.brace_depth += 1
        elif ch == "}":
            self.brace_depth -= 1
            if self.brace_depth < 0:
                raise self.error("unexpected right brace '}'", pos)
        elif ch == "[":
            if self.bracket_depth > 0:
                raise self.error("unexpected left bracket '['", pos)
            self.bracket_depth += 1
        elif ch == "]":
            self.bracket_depth -= 1
            if self.bracket_depth < 0:
                raise self.error("unexpected right bracket ']'", pos)

    def _lex_string(self, quote: str) -> Token:
        text = self.expression
        start = self.pos
        i = start + 1
        while i < len(text):
            ch = text[i]
            if ch == "\\" and quote != "`":
                i += 2
                continue
            if ch == "\n" and quote != "`":
                break
            if ch == quote:
                self.pos = i + 1
                raw = text[start : self.pos]
                return Token(TokenType.STRING, raw, start, unquote(text, raw, start))
            i += 1
        if quote == "`":
            raise self.error("unterminated raw string", start)
        raise self.error("unterminated quoted string", start)

    def _lex_number_or_duration(self) -> Token:
        text = self.expression
        start = self.pos
        match = _DURATION_RE.match(text, start)
        if match:
            raw = match.group(0)
            try:
                value = parse_duration(raw)
            except ValueError as e:
                raise self.error(str(e), start) from e
            self.pos = match.end()
            return Token(TokenType.DURATION, raw, start, value)

        match = _HEX_RE.match(text, start) or _NUMBER_RE.match(text, start)
        assert match is not None
        end = match.end()
        if end < len(text) and (text[end].isalnum() or text[end] in "_:."):
            raise self.error(f"bad number or duration syntax: {text[start:end + 1]!r}", start)
        raw = match.group(0)
        value = float(int(raw, 16)) if raw[:2].lower() == "0x" else float(raw)
        self.pos = end
        return Token(TokenType.NUMBER, raw, start, value)

    def _lex_identifier(self) -> Token:
        text = self.expression
        start = self.pos
        match = _IDENTIFIER_RE.match(text, start)
        assert match is not None
        word = match.group(0)
        self.pos = match.end()
        lowered = word.lower()

        if ":" in word:
            if self.brace_depth > 0:
                raise self.error(f"unexpected character in label name: {word!r}", start)
            return Token(TokenType.METRIC_IDENTIFIER, word, start, word)
        if self.brace_depth > 0:
            return Token(TokenType.IDENTIFIER, word, start, word)
        if lowered in ("inf", "nan"):
            return Token(TokenType.NUMBER, word, start, float(lowered))
        if lowered in WORD_OPERATORS:
            return Token(TokenType.OPERATOR, word, start, lowered)
        if lowered in KEYWORDS:
            return Token(TokenType.KEYWORD, word, start, lowered)
        if lowered in AGGREGATORS:
            return Token(TokenType.AGGREGATOR, word, start, lowered)
        return Token(TokenType.IDENTIFIER, word, start, word)


def tokenize(expression: str) -> List[Token]:
    """Tokenize an expression, raising ParseError on lexical errors."""
    return Lexer(expression).tokens()
