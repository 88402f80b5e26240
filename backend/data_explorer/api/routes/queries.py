"""
Query template management and execution.

Endpoints: list, create, show (optionally as a download), update (including
undelete), delete, parse_params, run a stored query, run ad-hoc SQL.
"""

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Response

from data_explorer.api.deps import ActorDep, ConnectionDep, StoreDep
from data_explorer.core.config import settings
from data_explorer.core.errors import NotFoundError
from data_explorer.engines.sql import format_result, param_names, run_query
from data_explorer.models import QueryTemplate, slugify
from data_explorer.schemas import (
    AdHocRunIn,
    ExecutionResponse,
    ParseParamsIn,
    ParseParamsOut,
    QueryTemplateBody,
    QueryTemplateListOut,
    QueryTemplateOut,
    QueryTemplatePublic,
    RunIn,
    SuccessOut,
)
from data_explorer.store import find_template

_log = logging.getLogger(__name__)

router = APIRouter(prefix="/queries", tags=["queries"])
adhoc_router = APIRouter(tags=["queries"])


def _from_body(data: dict[str, Any]) -> QueryTemplate:
    try:
        return QueryTemplate.from_dict(data)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


def _attachment(response: Response, filename: str) -> None:
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"


def _execute(
    conn: Any, query: QueryTemplate, body: RunIn, actor: str
) -> ExecutionResponse:
    result = run_query(
        conn,
        query,
        body.params,
        explain=body.explain,
        limit=body.limit,
        actor=actor,
    )
    if result.error is not None:
        _log.info("Query id=%s run by %s failed: %s", query.id, actor, result.error)
    return format_result(result, explain=body.explain)


@router.get("", response_model=QueryTemplateListOut)
def list_queries(store: StoreDep) -> Any:
    """List all stored queries."""
    return QueryTemplateListOut(
        queries=[QueryTemplatePublic.from_template(q) for q in store.list_all()]
    )


@router.post("", response_model=QueryTemplateOut)
def create_query(store: StoreDep, body: QueryTemplateBody) -> Any:
    """Create a query. An id in the body (e.g. from a JSON import) is ignored."""
    query = _from_body(body.query.model_dump(exclude_none=True))
    query.id = None
    store.save(query)
    return QueryTemplateOut(query=QueryTemplatePublic.from_template(query))


@router.post("/parse_params", response_model=ParseParamsOut)
def parse_params(body: ParseParamsIn) -> Any:
    """Placeholder names of ``sql`` in order (duplicates kept)."""
    return ParseParamsOut(names=param_names(body.sql))


@router.get("/{id}", response_model=QueryTemplateOut)
def get_query(
    store: StoreDep, id: int, response: Response, export: bool = False
) -> Any:
    """Query detail. ``export=true`` serves it as a ``.dcquery.json`` download."""
    query = find_template(store, id)
    if export:
        _attachment(response, f"{query.slug}.dcquery.json")
    return QueryTemplateOut(query=QueryTemplatePublic.from_template(query))


@router.put("/{id}", response_model=QueryTemplateOut)
def update_query(store: StoreDep, id: int, body: QueryTemplateBody) -> Any:
    """
    Update name, description, sql and options.

    If the record was deleted, it is restored under the id given in the body;
    without one the request fails with 404.
    """
    query = find_template(store, id, ignore_deleted=True)
    data = body.query.model_dump(exclude_none=True)

    if query.id is None:
        if not data.get("id"):
            raise NotFoundError(id)
        query.id = int(data["id"])
        _log.info("Restoring deleted query id=%s", query.id)

    try:
        query.apply_update(data)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    store.save(query)
    return QueryTemplateOut(query=QueryTemplatePublic.from_template(query))


@router.delete("/{id}", response_model=SuccessOut)
def delete_query(store: StoreDep, id: int) -> Any:
    query = find_template(store, id)
    store.delete(query.id)
    return SuccessOut()


@router.post(
    "/{id}/run", response_model=ExecutionResponse, response_model_exclude_none=True
)
def run_stored_query(
    store: StoreDep,
    conn: ConnectionDep,
    actor: ActorDep,
    id: int,
    body: RunIn,
    response: Response,
) -> Any:
    """
    Run a stored query.

    Always 200: check ``success`` and ``errors``. ``duration`` is in
    milliseconds; ``params`` echoes the values actually bound; ``explain`` is
    present only when requested.
    """
    query = find_template(store, id)
    if body.download:
        host = slugify(settings.EXPLORER_HOSTNAME) or "data-explorer"
        _attachment(
            response,
            f"{query.slug}@{host}-{date.today().isoformat()}.dcqresult.json",
        )
    return _execute(conn, query, body, actor)


@adhoc_router.post(
    "/run", response_model=ExecutionResponse, response_model_exclude_none=True
)
def run_adhoc_query(
    conn: ConnectionDep,
    actor: ActorDep,
    body: AdHocRunIn,
) -> Any:
    """Run SQL that is not stored as a template."""
    query = QueryTemplate(name="Ad-hoc query", sql=body.sql)
    return _execute(conn, query, body, actor)
