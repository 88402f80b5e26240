import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.middleware.cors import CORSMiddleware

from data_explorer.api.main import api_router
from data_explorer.core.config import settings
from data_explorer.core.errors import ExplorerError, NotFoundError, ValidationError
from data_explorer.core.pool import get_pool_manager
from data_explorer.engines.schema import (
    SENSITIVE_COLUMNS,
    SchemaCache,
    SchemaCatalogBuilder,
    build_registry,
)

_logger = logging.getLogger(__name__)

# Explorer errors that escape a route (rather than being reported in a run
# result) map onto these statuses; anything else is a 500.
_EXPLORER_ERROR_STATUS: dict[type[ExplorerError], int] = {
    NotFoundError: 404,
    ValidationError: 422,
}


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


def create_schema_cache() -> SchemaCache:
    """Schema cache wired to the configured enums, deny-list and table order."""
    builder = SchemaCatalogBuilder(
        enums=build_registry(settings.EXPLORER_ENUMS_FILE),
        sensitive=SENSITIVE_COLUMNS,
        favored_tables=settings.EXPLORER_FAVORED_TABLES,
    )
    return SchemaCache(builder)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app.state.schema_cache = create_schema_cache()
    _logger.info(
        "Data explorer started (enabled=%s, default limit=%s)",
        settings.EXPLORER_ENABLED,
        settings.EXPLORER_DEFAULT_LIMIT,
    )
    yield
    get_pool_manager().dispose()


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Error responses: always {"detail": "<message>"}
# ---------------------------------------------------------------------------


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """422 with one readable line per field problem instead of raw Pydantic errors."""
    messages = []
    for err in exc.errors():
        path = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "Invalid value")
        messages.append(f"{path}: {msg}" if path else msg)
    return JSONResponse(status_code=422, content={"detail": "; ".join(messages)})


@app.exception_handler(ExplorerError)
async def explorer_exception_handler(
    request: Request, exc: ExplorerError
) -> JSONResponse:
    status_code = 500
    for cls, code in _EXPLORER_ERROR_STATUS.items():
        if isinstance(exc, cls):
            status_code = code
            break
    if status_code == 500:
        _logger.error("Explorer error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    _logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    detail = "Internal server error"
    if settings.ENVIRONMENT == "local":
        detail = f"Internal server error: {exc}"
    return JSONResponse(status_code=500, content={"detail": detail})


if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)
