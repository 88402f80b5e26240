from fastapi import APIRouter
from fastapi.responses import JSONResponse

from data_explorer.core.health import liveness_check, readiness_check

router = APIRouter(prefix="/utils", tags=["utils"])


def _probe_result(ok: bool, failures: list[str], message: str) -> bool | JSONResponse:
    if ok:
        return True
    return JSONResponse(
        status_code=503,
        content={"success": False, "message": message, "data": failures},
    )


@router.get("/liveness/", response_model=None)
async def liveness() -> bool | JSONResponse:
    """Process is up and serving requests. No I/O."""
    return _probe_result(*liveness_check(), "Process unhealthy")


@router.get("/health-check/", response_model=None)
def health_check() -> bool | JSONResponse:
    """
    Readiness: store database, target database and, when CACHE_ENABLED,
    Redis. 200 ``true`` when all answer; 503 listing the failed ones.
    """
    return _probe_result(*readiness_check(), "Service Unavailable")
