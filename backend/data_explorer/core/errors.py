"""
Error taxonomy for query execution.

- ValidationError: the query failed a static safety check and never reached
  the database.
- DatabaseExecutionError: the database raised during transaction setup,
  execution or EXPLAIN. Keeps the driver exception as ``original``.
- NotFoundError: a template id did not resolve to a stored record.

``error_message`` derives the single user-facing string for any of them.
"""

from __future__ import annotations

import re


class ExplorerError(Exception):
    """Base class for data explorer errors."""

    pass


class ValidationError(ExplorerError):
    """Raised (or returned in a result) when a query fails a static check."""

    pass


class NotFoundError(ExplorerError):
    """Raised when a query template id does not resolve to a stored record."""

    def __init__(self, query_id: int | None = None, message: str | None = None) -> None:
        self.query_id = query_id
        super().__init__(message or f"Query not found: {query_id}")


class DatabaseExecutionError(ExplorerError):
    """Wraps any failure raised by the database driver."""

    def __init__(self, original: BaseException) -> None:
        self.original = original
        super().__init__(str(original))


def _strip_class_prefix(message: str, original: BaseException) -> str:
    cls = type(original)
    qualified = f"{cls.__module__}.{cls.__qualname__}"
    # "(psycopg.errors.SyntaxError) ..." as rendered by SQLAlchemy wrappers
    message = re.sub(
        r"^\s*\((?:%s|%s)\)\s*" % (re.escape(qualified), re.escape(cls.__name__)),
        "",
        message,
    )
    # "SyntaxError: ..." or "psycopg.errors.SyntaxError: ..."
    message = re.sub(
        r"^\s*(?:%s|%s):\s*" % (re.escape(qualified), re.escape(cls.__name__)),
        "",
        message,
    )
    return message.strip()


def error_message(err: BaseException) -> str:
    """Display message for an execution error."""
    if isinstance(err, DatabaseExecutionError):
        return _strip_class_prefix(str(err), err.original)
    return f"{type(err).__name__}: {err}"
