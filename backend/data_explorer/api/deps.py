from collections.abc import Generator
from typing import Annotated, Any

from fastapi import Depends, Header, HTTPException, Request, status
from sqlmodel import Session

from data_explorer.core.config import settings
from data_explorer.core.db import engine
from data_explorer.core.pool import get_pool_manager
from data_explorer.engines.schema import SchemaCache
from data_explorer.store import KeyValueTemplateStore, TemplateStore

DEFAULT_ACTOR = "system"


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_db)]


def get_template_store(session: SessionDep) -> TemplateStore:
    return KeyValueTemplateStore(session)


StoreDep = Annotated[TemplateStore, Depends(get_template_store)]


def get_target_connection() -> Generator[Any, None, None]:
    """Check out a target database connection for the duration of the request."""
    with get_pool_manager().connection() as conn:
        yield conn


ConnectionDep = Annotated[Any, Depends(get_target_connection)]


def get_schema_cache(request: Request) -> SchemaCache:
    return request.app.state.schema_cache


SchemaCacheDep = Annotated[SchemaCache, Depends(get_schema_cache)]


def get_actor(
    x_explorer_actor: Annotated[str | None, Header()] = None,
) -> str:
    """Label recorded in the SQL comment header of every run."""
    return x_explorer_actor or DEFAULT_ACTOR


ActorDep = Annotated[str, Depends(get_actor)]


def check_enabled() -> None:
    if not settings.EXPLORER_ENABLED:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
