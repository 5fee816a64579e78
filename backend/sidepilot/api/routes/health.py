"""Liveness and readiness probes (no auth).

GET /api/health - process is up (503 while draining after SIGTERM)
GET /api/ready  - database and, when configured, Redis respond
"""

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sidepilot.core.config import get_settings
from sidepilot.db import get_redis, ping_db

logger = structlog.get_logger(__name__)

router = APIRouter()

SERVICE = "sidepilot-backend"


@router.get("/health")
async def health_check(request: Request):
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(status_code=503, content={"status": "shutting_down", "service": SERVICE})
    return {"status": "healthy", "service": SERVICE}


@router.get("/ready")
async def readiness_check():
    """200 when every configured dependency answers, else 503 with per-check results."""
    settings = get_settings()
    checks: dict[str, bool] = {}

    if settings.storage_backend != "memory":
        try:
            await ping_db()
            checks["database"] = True
        except Exception as e:
            checks["database"] = False
            logger.error("database_health_check_failed", error=str(e), error_type=type(e).__name__)

    if settings.redis_url:
        try:
            await get_redis().ping()
            checks["redis"] = True
        except Exception as e:
            checks["redis"] = False
            logger.error("redis_health_check_failed", error=str(e), error_type=type(e).__name__)

    ready = all(checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )
