"""Signatures of the PromQL functions and aggregation operators."""

from __future__ import annotations

from typing import Dict, Optional

from grafana_autodoc.promql.ast import Function, ValueType

S = ValueType.SCALAR
V = ValueType.VECTOR
M = ValueType.MATRIX
STR = ValueType.STRING


def _fn(name: str, *arg_types: ValueType, returns: ValueType = V, variadic: int = 0) -> Function:
    return Function(name=name, arg_types=tuple(arg_types), return_type=returns, variadic=variadic)


_SIGNATURES = [
    # Math on instant vectors
    *(
        _fn(name, V)
        for name in (
            "abs", "ceil", "floor", "exp", "sqrt", "ln", "log2", "log10", "sgn",
            "deg", "rad", "acos", "acosh", "asin", "asinh", "atan", "atanh",
            "cos", "cosh", "sin", "sinh", "tan", "tanh",
            "absent", "timestamp", "sort", "sort_desc",
            "histogram_avg", "histogram_count", "histogram_sum",
            "histogram_stddev", "histogram_stdvar",
        )
    ),
    # Range vector functions
    *(
        _fn(name, M)
        for name in (
            "rate", "irate", "increase", "delta", "idelta", "deriv", "changes",
            "resets", "absent_over_time", "present_over_time",
            "avg_over_time", "count_over_time", "last_over_time",
            "max_over_time", "min_over_time", "sum_over_time",
            "stddev_over_time", "stdvar_over_time", "mad_over_time",
        )
    ),
    # Calendar functions default to time() when called without arguments
    *(
        _fn(name, V, variadic=1)
        for name in (
            "day_of_month", "day_of_week", "day_of_year", "days_in_month",
            "hour", "minute", "month", "year",
        )
    ),
    _fn("clamp", V, S, S),
    _fn("clamp_max", V, S),
    _fn("clamp_min", V, S),
    _fn("round", V, S, variadic=1),
    _fn("histogram_quantile", S, V),
    _fn("histogram_fraction", S, S, V),
    _fn("holt_winters", M, S, S),
    _fn("double_exponential_smoothing", M, S, S),
    _fn("predict_linear", M, S),
    _fn("quantile_over_time", S, M),
    _fn("label_join", V, STR, STR, STR, variadic=-1),
    _fn("label_replace", V, STR, STR, STR, STR),
    _fn("sort_by_label", V, STR, variadic=-1),
    _fn("sort_by_label_desc", V, STR, variadic=-1),
    _fn("scalar", V, returns=S),
    _fn("vector", S),
    _fn("time", returns=S),
    _fn("pi", returns=S),
]

FUNCTIONS: Dict[str, Function] = {fn.name: fn for fn in _SIGNATURES}

# Aggregation operators and the type of their leading parameter, if any
AGGREGATORS: Dict[str, Optional[ValueType]] = {
    "sum": None,
    "avg": None,
    "count": None,
    "min": None,
    "max": None,
    "group": None,
    "stddev": None,
    "stdvar": None,
    "topk": S,
    "bottomk": S,
    "quantile": S,
    "limitk": S,
    "limit_ratio": S,
    "count_values": STR,
}


def get_function(name: str) -> Optional[Function]:
    """Look up a function signature by name."""
    return FUNCTIONS.get(name)
