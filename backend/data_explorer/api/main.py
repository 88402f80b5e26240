from fastapi import APIRouter, Depends

from data_explorer.api.deps import check_enabled
from data_explorer.api.routes import queries, schema, utils

explorer_router = APIRouter(prefix="/explorer", dependencies=[Depends(check_enabled)])
explorer_router.include_router(queries.router)
explorer_router.include_router(queries.adhoc_router)
explorer_router.include_router(schema.router)

api_router = APIRouter()
api_router.include_router(explorer_router)
api_router.include_router(utils.router)
