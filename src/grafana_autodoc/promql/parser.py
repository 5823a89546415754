"""
Recursive-descent parser for PromQL.

Builds the AST defined in ``grafana_autodoc.promql.ast`` and applies the
type checks Prometheus performs at parse time, so an expression accepted
here is one Prometheus would accept too.

Operator precedence, lowest first:

    or
    and unless
    == != <= < >= >
    + -
    * / % atan2
    unary + -
    ^            (right associative)
"""

from __future__ import annotations

import re
from dataclasses import replace
from datetime import timedelta
from typing import List, Optional, Tuple

from grafana_autodoc.core.errors import ParseError
from grafana_autodoc.promql.ast import (
    AggregateExpr,
    AtModifier,
    BinaryExpr,
    Call,
    Cardinality,
    Expr,
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
)
from grafana_autodoc.promql.functions import AGGREGATORS, get_function
from grafana_autodoc.promql.lexer import Token, TokenType, tokenize
from grafana_autodoc.promql.regex import compile_matcher_regex

BINARY_PRECEDENCE = {
    "or": 1,
    "and": 2,
    "unless": 2,
    "==": 3,
    "!=": 3,
    "<=": 3,
    "<": 3,
    ">=": 3,
    ">": 3,
    "+": 4,
    "-": 4,
    "*": 5,
    "/": 5,
    "%": 5,
    "atan2": 5,
    "^": 7,
}
UNARY_PRECEDENCE = 6
COMPARISON_OPERATORS = {"==", "!=", "<=", "<", ">=", ">"}
SET_OPERATORS = {"and", "or", "unless"}
RIGHT_ASSOCIATIVE = {"^"}

_MATCH_OPERATORS = {
    "=": MatchType.EQUAL,
    "!=": MatchType.NOT_EQUAL,
    "=~": MatchType.REGEX,
    "!~": MatchType.NOT_REGEX,
}

_LABEL_TOKEN_TYPES = {
    TokenType.IDENTIFIER,
    TokenType.KEYWORD,
    TokenType.AGGREGATOR,
}


class Parser:
    """Parse one PromQL expression."""

    def __init__(self, expression: str):
        self.expression = expression
        self.tokens = tokenize(expression)
        self.index = 0

    # === Token helpers ===

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def peek(self, offset: int = 1) -> Token:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def advance(self) -> Token:
        token = self.current
        if token.type != TokenType.EOF:
            self.index += 1
        return token

    def at(self, token_type: TokenType, value: Optional[str] = None) -> bool:
        token = self.current
        return token.type == token_type and (value is None or token.value == value)

    def accept(self, token_type: TokenType, value: Optional[str] = None) -> Optional[Token]:
        if self.at(token_type, value):
            return self.advance()
        return None

    def expect(self, token_type: TokenType, context: str) -> Token:
        if not self.at(token_type):
            raise self.unexpected(context, expected=token_type.value)
        return self.advance()

    def error(self, reason: str, pos: Optional[int] = None) -> ParseError:
        return ParseError(self.expression, reason, self.current.pos if pos is None else pos)

    def unexpected(self, context: str, expected: Optional[str] = None) -> ParseError:
        reason = f"unexpected {self.current.describe()} in {context}"
        if expected:
            reason += f", expected {expected}"
        return self.error(reason)

    # === Entry point ===

    def parse(self) -> Expr:
        if self.at(TokenType.EOF):
            raise self.error("no expression found in input")
        expr = self.parse_expr(0)
        if not self.at(TokenType.EOF):
            raise self.unexpected("expression", expected="end of input")
        return expr

    # === Expressions ===

    def parse_expr(self, min_precedence: int) -> Expr:
        lhs = self.parse_unary()
        while True:
            token = self.current
            if token.type != TokenType.OPERATOR or token.value not in BINARY_PRECEDENCE:
                return lhs
            precedence = BINARY_PRECEDENCE[token.value]
            if precedence < min_precedence:
                return lhs
            self.advance()
            op = token.value
            return_bool, matching = self.parse_binary_modifiers(op)
            next_min = precedence if op in RIGHT_ASSOCIATIVE else precedence + 1
            rhs = self.parse_expr(next_min)
            lhs = self.check_binary(
                BinaryExpr(op=op, lhs=lhs, rhs=rhs, return_bool=return_bool, matching=matching),
                token.pos,
            )

    def parse_unary(self) -> Expr:
        token = self.current
        if token.type == TokenType.OPERATOR and token.value in ("+", "-"):
            self.advance()
            operand = self.parse_expr(UNARY_PRECEDENCE + 1)
            if isinstance(operand, NumberLiteral):
                return NumberLiteral(-operand.value if token.value == "-" else operand.value)
            if operand.type not in (ValueType.SCALAR, ValueType.VECTOR):
                raise self.error(
                    f"unary expression only allowed on expressions of type scalar or "
                    f"instant vector, got {operand.type.value}",
                    token.pos,
                )
            return UnaryExpr(op=token.value, expr=operand)
        return self.parse_postfix(self.parse_primary())

    def parse_binary_modifiers(self, op: str) -> Tuple[bool, Optional[VectorMatching]]:
        return_bool = False
        if self.at(TokenType.KEYWORD, "bool"):
            if op not in COMPARISON_OPERATORS:
                raise self.error("bool modifier can only be used on comparison operators")
            self.advance()
            return_bool = True

        matching: Optional[VectorMatching] = None
        card = Cardinality.MANY_TO_MANY if op in SET_OPERATORS else Cardinality.ONE_TO_ONE
        if self.at(TokenType.KEYWORD, "on") or self.at(TokenType.KEYWORD, "ignoring"):
            on = self.advance().value == "on"
            labels = self.parse_label_list("grouping opts")
            include: Tuple[str, ...] = ()
            if self.at(TokenType.KEYWORD, "group_left") or self.at(TokenType.KEYWORD, "group_right"):
                if op in SET_OPERATORS:
                    raise self.error(f"no grouping allowed for \"{op}\" operation")
                side = self.advance().value
                card = Cardinality.MANY_TO_ONE if side == "group_left" else Cardinality.ONE_TO_MANY
                if self.at(TokenType.LEFT_PAREN):
                    include = self.parse_label_list("grouping opts")
                overlap = set(labels) & set(include)
                if on and overlap:
                    raise self.error(
                        f"label {sorted(overlap)[0]!r} must not occur in ON and GROUP clause at once"
                    )
            matching = VectorMatching(card=card, labels=labels, on=on, include=include)
        elif op in SET_OPERATORS:
            matching = VectorMatching(card=card)
        return return_bool, matching

    def parse_primary(self) -> Expr:
        token = self.current

        if token.type == TokenType.NUMBER:
            self.advance()
            return NumberLiteral(token.value)
        if token.type == TokenType.STRING:
            self.advance()
            return StringLiteral(token.value)
        if token.type == TokenType.LEFT_PAREN:
            self.advance()
            if self.at(TokenType.RIGHT_PAREN):
                raise self.unexpected("paren expression")
            inner = self.parse_expr(0)
            self.expect(TokenType.RIGHT_PAREN, "paren expression")
            return ParenExpr(inner)
        if token.type == TokenType.LEFT_BRACE:
            return self.parse_vector_selector("")
        if token.type == TokenType.AGGREGATOR:
            return self.parse_aggregation()
        if token.type == TokenType.IDENTIFIER and self.peek().type == TokenType.LEFT_PAREN:
            return self.parse_call()
        if token.type in (TokenType.IDENTIFIER, TokenType.METRIC_IDENTIFIER):
            self.advance()
            return self.parse_vector_selector(token.text)
        if token.type == TokenType.DURATION:
            raise self.error(f"unexpected {token.describe()}")
        if token.type == TokenType.EOF:
            raise self.error("unexpected end of input")
        raise self.unexpected("expression")

    def parse_postfix(self, expr: Expr) -> Expr:
        """Apply range, subquery, offset and @ suffixes."""
        while True:
            if self.at(TokenType.LEFT_BRACKET):
                expr = self.parse_range(expr)
            elif self.at(TokenType.KEYWORD, "offset"):
                expr = self.parse_offset(expr)
            elif self.at(TokenType.AT):
                expr = self.parse_at(expr)
            else:
                return expr

    # === Selectors ===

    def parse_vector_selector(self, name: str) -> VectorSelector:
        start = self.current.pos
        matchers: List[LabelMatcher] = []
        if name:
            matchers.append(LabelMatcher(MatchType.EQUAL, "__name__", name))
        if self.accept(TokenType.LEFT_BRACE):
            while not self.at(TokenType.RIGHT_BRACE):
                matcher = self.parse_label_matcher()
                if name and matcher.name == "__name__":
                    raise self.error(f"metric name must not be set twice: {name!r} or {matcher.value!r}")
                matchers.append(matcher)
                if not self.accept(TokenType.COMMA):
                    break
            self.expect(TokenType.RIGHT_BRACE, "label matching")

        if not any(not m.matches_empty() for m in matchers):
            raise self.error("vector selector must contain at least one non-empty matcher", start)
        return VectorSelector(name=name, matchers=tuple(matchers))

    def parse_label_matcher(self) -> LabelMatcher:
        if self.current.type == TokenType.STRING:
            # Quoted label names; a bare quoted string is a metric name
            name_token = self.advance()
            if self.current.type != TokenType.OPERATOR or self.current.value not in _MATCH_OPERATORS:
                return LabelMatcher(MatchType.EQUAL, "__name__", name_token.value)
            name = name_token.value
        elif self.current.type in _LABEL_TOKEN_TYPES:
            name = self.advance().text
        else:
            raise self.unexpected("label matching", expected="label matching operator")

        op_token = self.current
        if op_token.type != TokenType.OPERATOR or op_token.value not in _MATCH_OPERATORS:
            raise self.unexpected("label matching", expected="label matching operator")
        self.advance()
        match_type = _MATCH_OPERATORS[op_token.value]

        value_token = self.current
        if value_token.type != TokenType.STRING:
            raise self.unexpected("label matching", expected="string")
        self.advance()

        if match_type in (MatchType.REGEX, MatchType.NOT_REGEX):
            try:
                compile_matcher_regex(value_token.value)
            except re.error as e:
                raise self.error(f"error parsing regexp: {e}", value_token.pos) from e
        return LabelMatcher(match_type, name, value_token.value)

    def parse_range(self, expr: Expr) -> Expr:
        open_pos = self.advance().pos
        range_ = self.parse_duration_token("range")

        if self.accept(TokenType.COLON):
            step: Optional[timedelta] = None
            if not self.at(TokenType.RIGHT_BRACKET):
                step = self.parse_duration_token("subquery step")
            self.expect(TokenType.RIGHT_BRACKET, "subquery selector")
            if expr.type != ValueType.VECTOR:
                raise self.error(
                    f"subquery is only allowed on instant vector, got {expr.type.value} instead",
                    open_pos,
                )
            return SubqueryExpr(expr=expr, range=range_, step=step)

        self.expect(TokenType.RIGHT_BRACKET, "matrix selector")
        if not isinstance(expr, VectorSelector):
            raise self.error("ranges only allowed for vector selectors", open_pos)
        if expr.offset is not None or expr.at is not None:
            raise self.error("no offset or @ modifiers allowed before range", open_pos)
        return MatrixSelector(vector_selector=expr, range=range_)

    def parse_duration_token(self, context: str) -> timedelta:
        token = self.current
        if token.type != TokenType.DURATION:
            raise self.unexpected(context, expected="duration")
        self.advance()
        if token.value <= timedelta(0) and context == "range":
            raise self.error("duration must be greater than 0", token.pos)
        return token.value

    def parse_offset(self, expr: Expr) -> Expr:
        offset_pos = self.advance().pos
        negative = False
        if self.current.type == TokenType.OPERATOR and self.current.value in ("+", "-"):
            negative = self.advance().value == "-"
        amount = self.current
        if amount.type != TokenType.DURATION:
            raise self.unexpected("offset", expected="duration")
        self.advance()
        offset = -amount.value if negative else amount.value

        if isinstance(expr, VectorSelector):
            if expr.offset is not None:
                raise self.error("offset may not be set multiple times", offset_pos)
            return replace(expr, offset=offset)
        if isinstance(expr, MatrixSelector):
            inner = expr.vector_selector
            if inner.offset is not None:
                raise self.error("offset may not be set multiple times", offset_pos)
            return MatrixSelector(vector_selector=replace(inner, offset=offset), range=expr.range)
        if isinstance(expr, SubqueryExpr):
            if expr.offset is not None:
                raise self.error("offset may not be set multiple times", offset_pos)
            return replace(expr, offset=offset)
        raise self.error(
            "offset modifier must be preceded by an instant vector selector "
            "or range vector selector or a subquery",
            offset_pos,
        )

    def parse_at(self, expr: Expr) -> Expr:
        at_pos = self.advance().pos
        token = self.current
        if token.type == TokenType.IDENTIFIER and token.text in ("start", "end"):
            self.advance()
            self.expect(TokenType.LEFT_PAREN, "@ modifier")
            self.expect(TokenType.RIGHT_PAREN, "@ modifier")
            at = AtModifier(preprocessor=token.text)
        else:
            negative = False
            if token.type == TokenType.OPERATOR and token.value in ("+", "-"):
                negative = self.advance().value == "-"
            number = self.current
            if number.type != TokenType.NUMBER:
                raise self.unexpected("@ modifier", expected="timestamp")
            self.advance()
            value = -number.value if negative else number.value
            if value != value or value in (float("inf"), float("-inf")):
                raise self.error(f"timestamp out of bounds for @ modifier: {value}", number.pos)
            at = AtModifier(timestamp=value)

        if isinstance(expr, VectorSelector):
            if expr.at is not None:
                raise self.error("@ <timestamp> may not be set multiple times", at_pos)
            return replace(expr, at=at)
        if isinstance(expr, MatrixSelector):
            inner = expr.vector_selector
            if inner.at is not None:
                raise self.error("@ <timestamp> may not be set multiple times", at_pos)
            return MatrixSelector(vector_selector=replace(inner, at=at), range=expr.range)
        if isinstance(expr, SubqueryExpr):
            if expr.at is not None:
                raise self.error("@ <timestamp> may not be set multiple times", at_pos)
            return replace(expr, at=at)
        raise self.error(
            "@ modifier must be preceded by an instant vector selector "
            "or range vector selector or a subquery",
            at_pos,
        )

    # === Aggregations and calls ===

    def parse_label_list(self, context: str) -> Tuple[str, ...]:
        self.expect(TokenType.LEFT_PAREN, context)
        labels: List[str] = []
        while not self.at(TokenType.RIGHT_PAREN):
            token = self.current
            if token.type in _LABEL_TOKEN_TYPES or _is_word(token):
                labels.append(self.advance().text)
            elif token.type == TokenType.STRING:
                labels.append(self.advance().value)
            else:
                raise self.unexpected(context, expected="label")
            if not self.accept(TokenType.COMMA):
                break
        self.expect(TokenType.RIGHT_PAREN, context)
        return tuple(labels)

    def parse_aggregation(self) -> AggregateExpr:
        op_token = self.advance()
        op = op_token.value
        grouping: Tuple[str, ...] = ()
        without = False
        modifier_seen = False

        if self.at(TokenType.KEYWORD, "by") or self.at(TokenType.KEYWORD, "without"):
            without = self.advance().value == "without"
            grouping = self.parse_label_list("grouping opts")
            modifier_seen = True

        self.expect(TokenType.LEFT_PAREN, "aggregation")
        if self.at(TokenType.RIGHT_PAREN):
            raise self.error("no arguments for aggregate expression provided")
        args = [self.parse_expr(0)]
        while self.accept(TokenType.COMMA):
            if self.at(TokenType.RIGHT_PAREN):
                break
            args.append(self.parse_expr(0))
        self.expect(TokenType.RIGHT_PAREN, "aggregation")

        if not modifier_seen and (
            self.at(TokenType.KEYWORD, "by") or self.at(TokenType.KEYWORD, "without")
        ):
            without = self.advance().value == "without"
            grouping = self.parse_label_list("grouping opts")

        param_type = AGGREGATORS[op]
        param: Optional[Expr] = None
        if param_type is not None:
            if len(args) != 2:
                raise self.error(
                    f"wrong number of arguments for aggregate expression provided, expected 2, got {len(args)}",
                    op_token.pos,
                )
            param, body = args
            if param.type != param_type:
                raise self.error(
                    f"expected type {param_type.value} in aggregation parameter, got {param.type.value}",
                    op_token.pos,
                )
        else:
            if len(args) != 1:
                raise self.error(
                    f"wrong number of arguments for aggregate expression provided, expected 1, got {len(args)}",
                    op_token.pos,
                )
            body = args[0]

        if body.type != ValueType.VECTOR:
            raise self.error(
                f"expected type instant vector in aggregation expression, got {body.type.value}",
                op_token.pos,
            )
        return AggregateExpr(op=op, expr=body, param=param, grouping=grouping, without=without)

    def parse_call(self) -> Call:
        name_token = self.advance()
        func = get_function(name_token.text)
        if func is None:
            raise self.error(f"unknown function with name {name_token.text!r}", name_token.pos)

        self.expect(TokenType.LEFT_PAREN, "function call")
        args: List[Expr] = []
        while not self.at(TokenType.RIGHT_PAREN):
            args.append(self.parse_expr(0))
            if not self.accept(TokenType.COMMA):
                break
        self.expect(TokenType.RIGHT_PAREN, "function call")

        self.check_call_arguments(func.name, func.arg_types, func.variadic, args, name_token.pos)
        return Call(func=func, args=tuple(args))

    # === Type checks ===

    def check_call_arguments(
        self,
        name: str,
        arg_types: Tuple[ValueType, ...],
        variadic: int,
        args: List[Expr],
        pos: int,
    ) -> None:
        expected = len(arg_types)
        if variadic == 0:
            if len(args) != expected:
                raise self.error(
                    f"expected {expected} argument(s) in call to {name!r}, got {len(args)}", pos
                )
        else:
            minimum = expected - 1
            if len(args) < minimum:
                raise self.error(
                    f"expected at least {minimum} argument(s) in call to {name!r}, got {len(args)}",
                    pos,
                )
            maximum = minimum + variadic
            if variadic > 0 and len(args) > maximum:
                raise self.error(
                    f"expected at most {maximum} argument(s) in call to {name!r}, got {len(args)}",
                    pos,
                )

        for i, arg in enumerate(args):
            want = arg_types[min(i, expected - 1)]
            if arg.type != want:
                raise self.error(
                    f"expected type {want.value} in call to function {name!r}, got {arg.type.value}",
                    pos,
                )

    def check_binary(self, expr: BinaryExpr, pos: int) -> BinaryExpr:
        lt, rt = expr.lhs.type, expr.rhs.type
        if lt not in (ValueType.SCALAR, ValueType.VECTOR) or rt not in (
            ValueType.SCALAR,
            ValueType.VECTOR,
        ):
            raise self.error(
                "binary expression must contain only scalar and instant vector types", pos
            )

        both_vectors = lt == ValueType.VECTOR and rt == ValueType.VECTOR
        if expr.op in SET_OPERATORS:
            if not both_vectors:
                raise self.error(
                    f"set operator \"{expr.op}\" not allowed in binary scalar expression", pos
                )
        elif expr.matching is not None and not both_vectors:
            raise self.error("vector matching only allowed between instant vectors", pos)

        if expr.op in COMPARISON_OPERATORS and not expr.return_bool:
            if lt == ValueType.SCALAR and rt == ValueType.SCALAR:
                raise self.error("comparisons between scalars must use BOOL modifier", pos)
        return expr


def _is_word(token: Token) -> bool:
    """Word-shaped operators and numbers (``and``, ``inf``) used as label names."""
    return token.type in (TokenType.OPERATOR, TokenType.NUMBER) and token.text.isidentifier()


def parse_expr(expression: str) -> Expr:
    """
    Parse a PromQL expression into an AST.

    Args:
        expression: PromQL expression text

    Returns:
        Root node of the expression tree

    Raises:
        ParseError: If the expression is malformed or nested too deeply
    """
    try:
        return Parser(expression).parse()
    except RecursionError:
        raise ParseError(expression, "expression too deeply nested") from None
