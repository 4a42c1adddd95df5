"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse

from src.user_mvc.api.http.deps import get_gateway
from src.user_mvc.core.services import PersistenceGateway

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe: 200 OK as long as the process is running."""
    return {"status": "healthy"}


@router.get("/ready", response_model=None)
async def readiness(
    gateway: PersistenceGateway = Depends(get_gateway),
) -> dict[str, Any] | JSONResponse:
    """Readiness probe: 503 when the relational store cannot be reached."""
    db_healthy = await run_in_threadpool(gateway.health_check)
    checks = {
        "database": {
            "status": "healthy" if db_healthy else "unhealthy",
            "type": gateway.engine.dialect.name,
            "pool": gateway.get_pool_status(),
        }
    }

    if not db_healthy:
        return JSONResponse(
            status_code=503, content={"status": "not_ready", "checks": checks}
        )
    return {"status": "ready", "checks": checks}
