"""Health and readiness endpoints.

  /health (liveness): the process can respond.  Always 200; the body
    reports per-dependency status so a degraded Redis or database is
    visible without getting the container restarted.
  /ready (readiness): can this instance serve traffic right now?  503
    when the configured database is unreachable, since progress cannot be
    read or written without it.  Redis is optional (in-process
    fallbacks exist) and does not affect readiness.
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from heritage360.db.engine import engine, ping_database
from heritage360.db.redis import redis_pool

router = APIRouter(tags=["health"])


async def _redis_status() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except Exception:
        return "degraded"
    return "ok"


async def _database_status() -> str:
    if engine is None:
        return "not_configured"
    return "ok" if await ping_database() else "degraded"


@router.get("/health")
async def health() -> dict:
    checks = {
        "redis": await _redis_status(),
        "database": await _database_status(),
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    if await _database_status() == "degraded":
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
