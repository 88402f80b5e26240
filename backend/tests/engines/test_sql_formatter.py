"""Unit tests for engines.sql.formatter (format_result)."""

import psycopg

from data_explorer.core.errors import DatabaseExecutionError, ValidationError
from data_explorer.engines.sql import ExecutionResult, format_result


def test_success_payload() -> None:
    result = ExecutionResult(
        rows=[["1", "a"], ["2", None]],
        columns=["id", "name"],
        duration=0.01234,
        params={"a": 1},
    )
    out = format_result(result)

    assert out.success is True
    assert out.errors == []
    assert out.duration == 12.3
    assert out.params == {"a": 1}
    assert out.columns == ["id", "name"]
    assert out.rows == [["1", "a"], ["2", None]]
    assert out.explain is None


def test_explain_only_when_requested() -> None:
    result = ExecutionResult(rows=[], columns=["n"], explain="Result  (cost=0.00..0.01)")

    assert format_result(result).explain is None
    assert format_result(result, explain=True).explain == "Result  (cost=0.00..0.01)"


def test_database_error_message_has_no_class_prefix() -> None:
    err = psycopg.errors.UndefinedTable('relation "nope" does not exist')
    result = ExecutionResult(error=DatabaseExecutionError(err), duration=0.002)
    out = format_result(result)

    assert out.success is False
    assert out.errors == ['relation "nope" does not exist']
    assert out.duration == 2.0
    assert out.rows == []
    assert out.columns == []


def test_sqlalchemy_style_prefix_stripped() -> None:
    err = psycopg.errors.SyntaxError("syntax error at end of input")
    wrapped = DatabaseExecutionError(err)
    wrapped.args = ("(psycopg.errors.SyntaxError) syntax error at end of input",)

    out = format_result(ExecutionResult(error=wrapped))
    assert out.errors == ["syntax error at end of input"]


def test_other_errors_keep_class_name() -> None:
    out = format_result(ExecutionResult(error=ValidationError("Queries may not contain semicolons")))

    assert out.success is False
    assert out.errors == ["ValidationError: Queries may not contain semicolons"]


def test_failure_echoes_params() -> None:
    result = ExecutionResult(error=RuntimeError("boom"), params={"user_id": 5})
    out = format_result(result)

    assert out.params == {"user_id": 5}
    assert out.errors == ["RuntimeError: boom"]
