"""Tests for the PromQL tokenizer."""

from datetime import timedelta

import pytest

from grafana_autodoc.promql import ParseError, TokenType, parse_duration, tokenize


def types(expression):
    return [token.type for token in tokenize(expression)]


class TestParseDuration:
    """Tests for parse_duration."""

    def test_single_unit(self):
        assert parse_duration("5m") == timedelta(minutes=5)
        assert parse_duration("250ms") == timedelta(milliseconds=250)
        assert parse_duration("1y") == timedelta(days=365)

    def test_compound_duration(self):
        assert parse_duration("1h30m") == timedelta(hours=1, minutes=30)
        assert parse_duration("1d2h3m4s5ms") == timedelta(
            days=1, hours=2, minutes=3, seconds=4, milliseconds=5
        )

    def test_units_out_of_order_rejected(self):
        with pytest.raises(ValueError):
            parse_duration("30m1h")

    def test_repeated_unit_rejected(self):
        with pytest.raises(ValueError):
            parse_duration("1m1m")

    def test_missing_unit_rejected(self):
        with pytest.raises(ValueError):
            parse_duration("5")


class TestTokenize:
    """Tests for tokenize."""

    def test_simple_selector(self):
        assert types('up{job="api"}') == [
            TokenType.IDENTIFIER,
            TokenType.LEFT_BRACE,
            TokenType.IDENTIFIER,
            TokenType.OPERATOR,
            TokenType.STRING,
            TokenType.RIGHT_BRACE,
            TokenType.EOF,
        ]

    def test_range_selector_has_duration(self):
        tokens = tokenize("foo[5m]")
        assert tokens[2].type == TokenType.DURATION
        assert tokens[2].value == timedelta(minutes=5)

    def test_subquery_colon(self):
        assert TokenType.COLON in types("foo[1h:5m]")

    def test_recording_rule_name_is_metric_identifier(self):
        token = tokenize("job:http_requests:rate5m")[0]
        assert token.type == TokenType.METRIC_IDENTIFIER
        assert token.text == "job:http_requests:rate5m"

    def test_aggregator_is_case_insensitive(self):
        token = tokenize("SUM(foo)")[0]
        assert token.type == TokenType.AGGREGATOR
        assert token.value == "sum"

    def test_word_operators(self):
        tokens = tokenize("foo AND bar")
        assert tokens[1].type == TokenType.OPERATOR
        assert tokens[1].value == "and"

    def test_keywords_are_plain_labels_inside_braces(self):
        tokens = tokenize('foo{on="x"}')
        assert tokens[2].type == TokenType.IDENTIFIER

    def test_numbers(self):
        tokens = tokenize("1.5e3 + 0x1F + Inf")
        assert tokens[0].value == 1500.0
        assert tokens[2].value == 31.0
        assert tokens[4].type == TokenType.NUMBER
        assert tokens[4].value == float("inf")

    def test_string_escapes(self):
        assert tokenize(r'"a\nb"')[0].value == "a\nb"
        assert tokenize(r"`a\nb`")[0].value == r"a\nb"

    def test_comments_are_skipped(self):
        assert types("foo # trailing comment") == [TokenType.IDENTIFIER, TokenType.EOF]

    def test_token_positions(self):
        tokens = tokenize("foo + bar")
        assert [token.pos for token in tokens[:3]] == [0, 4, 6]

    def test_unterminated_string(self):
        with pytest.raises(ParseError, match="unterminated quoted string"):
            tokenize('foo{job="api}')

    def test_unclosed_paren(self):
        with pytest.raises(ParseError, match="unclosed left parenthesis"):
            tokenize("sum(")

    def test_unexpected_right_bracket(self):
        with pytest.raises(ParseError):
            tokenize("foo]")

    def test_unexpected_character(self):
        with pytest.raises(ParseError, match="unexpected character"):
            tokenize("foo $ bar")

    def test_grafana_placeholder_is_not_a_duration(self):
        with pytest.raises(ParseError):
            tokenize("rate(foo[$__range])")
