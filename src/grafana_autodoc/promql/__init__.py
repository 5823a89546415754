"""
PromQL parsing for grafana-autodoc.

A self-contained lexer, parser and AST for the Prometheus query language,
plus helpers that pull metric names out of parsed expressions.

Usage:
    from grafana_autodoc.promql import extract_metric_names, parse_expr

    expr = parse_expr('sum(rate(http_requests_total{job="api"}[5m]))')
    extract_metric_names("foo / on(job) bar")  # ["foo", "bar"]
"""

from grafana_autodoc.core.errors import ParseError
from grafana_autodoc.promql.ast import (
    AggregateExpr,
    AtModifier,
    BinaryExpr,
    Call,
    Cardinality,
    Expr,
    Function,
    LabelMatcher,
    MatchType,
    MatrixSelector,
    NumberLiteral,
    ParenExpr,
    StringLiteral,
    SubqueryExpr,
    UnaryExpr,
    ValueType,
    VectorMatching,
    VectorSelector,
    walk,
)
from grafana_autodoc.promql.functions import AGGREGATORS, FUNCTIONS, get_function
from grafana_autodoc.promql.lexer import Token, TokenType, parse_duration, tokenize
from grafana_autodoc.promql.metrics import extract_metric_names, extract_metrics, unique
from grafana_autodoc.promql.parser import parse_expr

__all__ = [
    # Parsing
    "parse_expr",
    "tokenize",
    "parse_duration",
    "ParseError",
    "Token",
    "TokenType",
    # AST
    "Expr",
    "AggregateExpr",
    "AtModifier",
    "BinaryExpr",
    "Call",
    "Cardinality",
    "Function",
    "LabelMatcher",
    "MatchType",
    "MatrixSelector",
    "NumberLiteral",
    "ParenExpr",
    "StringLiteral",
    "SubqueryExpr",
    "UnaryExpr",
    "ValueType",
    "VectorMatching",
    "VectorSelector",
    "walk",
    # Functions
    "AGGREGATORS",
    "FUNCTIONS",
    "get_function",
    # Metric extraction
    "extract_metrics",
    "extract_metric_names",
    "unique",
]
