"""PromQL abstract syntax tree.

The node set is closed: every expression is one of the dataclasses below.
Each node reports its value type and its child expressions, which is all
the generic traversal in ``walk`` needs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Iterator, Optional, Tuple

from grafana_autodoc.promql.regex import full_match


class ValueType(str, Enum):
    """Result type of an expression."""

    SCALAR = "scalar"
    VECTOR = "instant vector"
    MATRIX = "range vector"
    STRING = "string"


class MatchType(str, Enum):
    """Label matcher operators."""

    EQUAL = "="
    NOT_EQUAL = "!="
    REGEX = "=~"
    NOT_REGEX = "!~"


class Cardinality(str, Enum):
    """Vector matching cardinality of a binary expression."""

    ONE_TO_ONE = "one-to-one"
    MANY_TO_ONE = "many-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_MANY = "many-to-many"


@dataclass(frozen=True)
class LabelMatcher:
    """A single ``name<op>"value"`` matcher inside a selector."""

    type: MatchType
    name: str
    value: str

    def matches_empty(self) -> bool:
        """Return True if the matcher accepts a missing (empty) label."""
        if self.type == MatchType.EQUAL:
            return self.value == ""
        if self.type == MatchType.NOT_EQUAL:
            return self.value != ""
        matched = full_match(self.value, "")
        return matched if self.type == MatchType.REGEX else not matched

    def __str__(self) -> str:
        return f'{self.name}{self.type.value}"{self.value}"'


@dataclass(frozen=True)
class AtModifier:
    """``@`` modifier: a fixed timestamp or the ``start()``/``end()`` preprocessor."""

    timestamp: Optional[float] = None
    preprocessor: Optional[str] = None


@dataclass(frozen=True)
class VectorMatching:
    """``on``/``ignoring`` and ``group_left``/``group_right`` of a binary expression."""

    card: Cardinality = Cardinality.ONE_TO_ONE
    labels: Tuple[str, ...] = ()
    on: bool = False
    include: Tuple[str, ...] = ()


class Expr:
    """Base class for every expression node."""

    @property
    def type(self) -> ValueType:
        raise NotImplementedError

    def children(self) -> Tuple["Expr", ...]:
        return ()


@dataclass(frozen=True)
class NumberLiteral(Expr):
    value: float

    @property
    def type(self) -> ValueType:
        return ValueType.SCALAR


@dataclass(frozen=True)
class StringLiteral(Expr):
    value: str

    @property
    def type(self) -> ValueType:
        return ValueType.STRING


@dataclass(frozen=True)
class VectorSelector(Expr):
    """Instant vector selector, e.g. ``http_requests_total{job="api"}``.

    ``name`` is only set when the metric name is written as an identifier;
    the selector's matchers always include the equivalent ``__name__``
    matcher in that case.
    """

    name: str = ""
    matchers: Tuple[LabelMatcher, ...] = ()
    offset: Optional[timedelta] = None
    at: Optional[AtModifier] = None

    @property
    def type(self) -> ValueType:
        return ValueType.VECTOR

    @property
    def metric_name(self) -> str:
        """Metric name from the identifier or an equality ``__name__`` matcher."""
        if self.name:
            return self.name
        for matcher in self.matchers:
            if matcher.name == "__name__" and matcher.type == MatchType.EQUAL:
                return matcher.value
        return ""


@dataclass(frozen=True)
class MatrixSelector(Expr):
    """Range vector selector, e.g. ``http_requests_total[5m]``."""

    vector_selector: VectorSelector
    range: timedelta

    @property
    def type(self) -> ValueType:
        return ValueType.MATRIX

    def children(self) -> Tuple[Expr, ...]:
        return (self.vector_selector,)


@dataclass(frozen=True)
class SubqueryExpr(Expr):
    """Subquery, e.g. ``rate(foo[5m])[1h:1m]``."""

    expr: Expr
    range: timedelta
    step: Optional[timedelta] = None
    offset: Optional[timedelta] = None
    at: Optional[AtModifier] = None

    @property
    def type(self) -> ValueType:
        return ValueType.MATRIX

    def children(self) -> Tuple[Expr, ...]:
        return (self.expr,)


@dataclass(frozen=True)
class Call(Expr):
    """Function call."""

    func: "Function"
    args: Tuple[Expr, ...] = ()

    @property
    def type(self) -> ValueType:
        return self.func.return_type

    def children(self) -> Tuple[Expr, ...]:
        return self.args


@dataclass(frozen=True)
class AggregateExpr(Expr):
    """Aggregation such as ``sum by (job) (rate(foo[5m]))``."""

    op: str
    expr: Expr
    param: Optional[Expr] = None
    grouping: Tuple[str, ...] = ()
    without: bool = False

    @property
    def type(self) -> ValueType:
        return ValueType.VECTOR

    def children(self) -> Tuple[Expr, ...]:
        if self.param is not None:
            return (self.expr, self.param)
        return (self.expr,)


@dataclass(frozen=True)
class BinaryExpr(Expr):
    op: str
    lhs: Expr
    rhs: Expr
    return_bool: bool = False
    matching: Optional[VectorMatching] = None

    @property
    def type(self) -> ValueType:
        if self.lhs.type == ValueType.SCALAR and self.rhs.type == ValueType.SCALAR:
            return ValueType.SCALAR
        return ValueType.VECTOR

    def children(self) -> Tuple[Expr, ...]:
        return (self.lhs, self.rhs)


@dataclass(frozen=True)
class UnaryExpr(Expr):
    op: str
    expr: Expr

    @property
    def type(self) -> ValueType:
        return self.expr.type

    def children(self) -> Tuple[Expr, ...]:
        return (self.expr,)


@dataclass(frozen=True)
class ParenExpr(Expr):
    expr: Expr

    @property
    def type(self) -> ValueType:
        return self.expr.type

    def children(self) -> Tuple[Expr, ...]:
        return (self.expr,)


@dataclass(frozen=True)
class Function:
    """Signature of a PromQL function.

    ``variadic`` follows the Prometheus convention: 0 means exactly
    ``len(arg_types)`` arguments. Otherwise the last argument is optional,
    a positive value caps the argument count at ``len(arg_types) - 1 +
    variadic`` and -1 leaves it unbounded. Extra arguments take the type of
    the last declared one.
    """

    name: str
    arg_types: Tuple[ValueType, ...]
    return_type: ValueType
    variadic: int = 0


def walk(node: Expr) -> Iterator[Expr]:
    """Yield every node of the tree depth-first, pre-order, left to right."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children()))
