"""
Safe execution envelope for query templates.

Every run happens inside a transaction that is switched to READ ONLY before
anything else executes and is always rolled back, never committed. The
template SQL is wrapped as ``WITH query AS (...) SELECT * FROM query LIMIT n``
so the row cap holds whatever the inner query asks for.

Database failures never escape ``run_query``: they are returned in
``ExecutionResult.error`` together with the timing up to the failure.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import psycopg

from data_explorer.core.config import settings
from data_explorer.core.errors import DatabaseExecutionError, ValidationError
from data_explorer.core.pool.connect import rows_to_strings, set_statement_timeout
from data_explorer.engines.sql.params import coerce_params, to_driver_sql

if TYPE_CHECKING:
    from data_explorer.models import QueryTemplate

_log = logging.getLogger(__name__)

# Always bound so the parameter list is never empty; referenced from the
# header comment and stripped from the echoed params.
SENTINEL_PARAM = "xxdummy"

_ACTOR_UNSAFE_RE = re.compile(r"[^\w.@+ -]")


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one run. Check ``error`` before anything else."""

    error: BaseException | None = None
    rows: list[list[str | None]] | None = None
    columns: list[str] = field(default_factory=list)
    duration: float = 0.0  # seconds
    explain: str | None = None
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def duration_ms(self) -> float:
        return round(self.duration * 1000, 1)


def _sanitize_actor(actor: str) -> str:
    return _ACTOR_UNSAFE_RE.sub("", actor or "")[:100]


def build_statement(query: QueryTemplate, *, limit: int, actor: str) -> str:
    """Envelope SQL with colon placeholders still in place."""
    query_ref = query.id if query.id is not None else "new"
    # SQL comments are for the benefit of the slow query log
    return (
        "\n"
        "/*\n"
        " * DataExplorer Query\n"
        f" * Query: {settings.EXPLORER_ADMIN_PATH}?id={query_ref}\n"
        f" * Started by: {_sanitize_actor(actor)}\n"
        f" * :{SENTINEL_PARAM}\n"
        " */\n"
        "WITH query AS (\n"
        f"{query.sql}\n"
        ") SELECT * FROM query\n"
        f"LIMIT {int(limit)}\n"
    )


def build_explain_statement(query: QueryTemplate) -> str:
    return f"-- :{SENTINEL_PARAM} \nEXPLAIN {query.sql}"


def resolve_params(
    query: QueryTemplate, params: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Template defaults overlaid by supplied params, then coerced."""
    merged: dict[str, Any] = dict(query.defaults)
    merged.update(params or {})
    return coerce_params(merged)


def _bind(sql: str, args: Mapping[str, Any]) -> tuple[str, list[Any]]:
    driver_sql, names = to_driver_sql(sql)
    missing = sorted({n for n in names if n not in args})
    if missing:
        raise ValidationError(f"Missing value for parameter(s): {', '.join(missing)}")
    return driver_sql, [args[n] for n in names]


def run_query(
    conn: Any,
    query: QueryTemplate,
    params: Mapping[str, Any] | None = None,
    *,
    explain: bool = False,
    limit: int | None = None,
    actor: str = "",
) -> ExecutionResult:
    """
    Run ``query`` on ``conn`` (a psycopg connection) and return the outcome.

    - params: raw values keyed by placeholder name; override template defaults.
    - explain: also run EXPLAIN on the un-wrapped query with the same bindings.
    - limit: row cap (default EXPLORER_DEFAULT_LIMIT).
    - actor: label written into the SQL comment header.
    """
    if ";" in query.sql:
        return ExecutionResult(
            error=ValidationError("Queries may not contain semicolons"),
        )

    if SENTINEL_PARAM in query.param_names or SENTINEL_PARAM in (params or {}):
        return ExecutionResult(
            error=ValidationError(f"Parameter name '{SENTINEL_PARAM}' is reserved"),
        )

    query_args = resolve_params(query, params)
    # a stale template default may still carry the reserved name
    query_args.pop(SENTINEL_PARAM, None)
    echoed = dict(query_args)
    query_args[SENTINEL_PARAM] = 1

    effective_limit = limit if limit is not None else settings.EXPLORER_DEFAULT_LIMIT
    try:
        sql, args = _bind(
            build_statement(query, limit=effective_limit, actor=actor), query_args
        )
        explain_sql, explain_args = _bind(build_explain_statement(query), query_args)
    except ValidationError as e:
        return ExecutionResult(error=e, params=echoed)

    time_start = time.perf_counter()
    time_end = time_start
    rows: list[list[str | None]] | None = None
    columns: list[str] = []
    explain_text: str | None = None
    err: BaseException | None = None
    try:
        with conn.cursor() as cur:
            # Setting the transaction read only rejects shoot-in-foot
            # statements like SELECT ... FOR UPDATE at the database level.
            cur.execute("SET TRANSACTION READ ONLY")
            set_statement_timeout(cur)

            _log.debug("Running query id=%s actor=%s: %s", query.id, actor, sql)
            time_start = time.perf_counter()
            cur.execute(sql, args)
            raw_rows = cur.fetchall()
            time_end = time.perf_counter()
            columns = [d.name for d in cur.description or []]
            rows = rows_to_strings(raw_rows)

            if explain:
                cur.execute(explain_sql, explain_args)
                explain_text = "\n".join(str(r[0]) for r in cur.fetchall())
    except psycopg.Error as e:
        time_end = time.perf_counter()
        _log.info("Query id=%s failed: %s", query.id, e)
        err = DatabaseExecutionError(e)
    except Exception as e:
        time_end = time.perf_counter()
        _log.error("Query id=%s failed unexpectedly", query.id, exc_info=True)
        err = e
    finally:
        # Never commit: roll back even on success in case READ ONLY was bypassed.
        try:
            conn.rollback()
        except psycopg.Error as e:
            _log.warning("Rollback after query id=%s failed: %s", query.id, e)
            if err is None:
                err = DatabaseExecutionError(e)

    if err is not None:
        return ExecutionResult(
            error=err,
            duration=time_end - time_start,
            params=echoed,
        )
    return ExecutionResult(
        rows=rows,
        columns=columns,
        duration=time_end - time_start,
        explain=explain_text,
        params=echoed,
    )
