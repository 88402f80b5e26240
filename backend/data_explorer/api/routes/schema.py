"""
Schema catalog of the target database.

The response carries the schema version as ETag so clients can revalidate
with If-None-Match instead of downloading an unchanged catalog.
"""

from typing import Any

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from data_explorer.api.deps import ConnectionDep, SchemaCacheDep
from data_explorer.core.config import settings
from data_explorer.engines.schema import fetch_schema_version
from data_explorer.schemas import SuccessOut

router = APIRouter(prefix="/schema", tags=["schema"])


def _client_etags(header: str | None) -> set[str]:
    """Tags listed in If-None-Match, weak ones compared as strong."""
    if not header:
        return set()
    tags = set()
    for tag in header.split(","):
        tag = tag.strip()
        if tag.startswith("W/"):
            tag = tag[2:]
        if tag:
            tags.add(tag)
    return tags


@router.get("", response_model=None)
def get_schema(
    request: Request, conn: ConnectionDep, cache: SchemaCacheDep
) -> Response:
    """Tables and columns, favored tables first; sensitive and enum columns annotated."""
    version = fetch_schema_version(conn, settings.EXPLORER_SCHEMA_VERSION_TABLE)
    headers = {"Cache-Control": "public"}
    if version is not None:
        headers["ETag"] = f'"{version}"'
        client_tags = _client_etags(request.headers.get("if-none-match"))
        if headers["ETag"] in client_tags or "*" in client_tags:
            return Response(status_code=304, headers=headers)
    catalog = cache.get(conn, version)
    return JSONResponse(content=catalog.to_dict(), headers=headers)


@router.post("/invalidate", response_model=SuccessOut)
def invalidate_schema(cache: SchemaCacheDep) -> Any:
    """Drop the cached catalog; the next request rebuilds it."""
    cache.invalidate()
    return SuccessOut()
