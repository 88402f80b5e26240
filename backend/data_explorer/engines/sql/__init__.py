"""
Query templating and safe execution.

Exports: translate, param_names, coerce_params, run_query, ExecutionResult,
format_result.
"""

from data_explorer.engines.sql.envelope import ExecutionResult, run_query
from data_explorer.engines.sql.formatter import format_result
from data_explorer.engines.sql.params import (
    PlaceholderSet,
    coerce_params,
    param_names,
    to_driver_sql,
    translate,
)

__all__ = [
    "ExecutionResult",
    "PlaceholderSet",
    "coerce_params",
    "format_result",
    "param_names",
    "run_query",
    "to_driver_sql",
    "translate",
]
