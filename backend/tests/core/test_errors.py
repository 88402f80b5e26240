"""Unit tests for core.errors."""

import psycopg

from data_explorer.core.errors import (
    DatabaseExecutionError,
    NotFoundError,
    ValidationError,
    error_message,
)


def test_database_error_plain_message() -> None:
    err = DatabaseExecutionError(psycopg.errors.DivisionByZero("division by zero"))

    assert error_message(err) == "division by zero"


def test_database_error_class_name_prefix_stripped() -> None:
    original = psycopg.errors.DivisionByZero("division by zero")
    err = DatabaseExecutionError(original)
    err.args = ("DivisionByZero: division by zero",)

    assert error_message(err) == "division by zero"


def test_validation_error_keeps_class_name() -> None:
    assert error_message(ValidationError("no")) == "ValidationError: no"


def test_not_found_message() -> None:
    err = NotFoundError(12)

    assert err.query_id == 12
    assert str(err) == "Query not found: 12"
    assert str(NotFoundError(1, "gone")) == "gone"
