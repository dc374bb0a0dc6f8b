"""Health check route."""

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from taskhive.entrypoints.api.deps import RepositoryDep
from taskhive.entrypoints.api.schemas import ApiResponse, HealthOut

logger = structlog.get_logger()

router = APIRouter(tags=["health"])


@router.get("/health", response_model=ApiResponse[HealthOut])
async def health_check(repository: RepositoryDep) -> ApiResponse[HealthOut] | JSONResponse:
    """Report service and store health. 503 when the store is unreachable."""
    try:
        await repository.ping()
    except Exception:
        logger.warning("health_check_failed", exc_info=True)
        body = ApiResponse(
            success=False,
            message="Database unavailable",
            data=HealthOut(status="unhealthy", database="disconnected"),
        )
        return JSONResponse(status_code=503, content=body.model_dump(mode="json", by_alias=True))

    return ApiResponse(data=HealthOut(status="healthy", database="connected"))
