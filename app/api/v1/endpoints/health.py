"""
Health check endpoints
"""

from typing import Any

from fastapi import APIRouter, Depends

from app.config import settings
from app.core.redis import get_redis
from app.core.store import get_feed_hub
from app.schemas.response import HealthResponse
from app.services.feed_hub import FeedHub

router = APIRouter()


@router.get("/live")
async def liveness() -> Any:
    """
    Kubernetes liveness probe
    """
    return {"status": "alive", "service": "themove-api"}


@router.get("/ready", response_model=HealthResponse)
async def readiness(hub: FeedHub = Depends(get_feed_hub)) -> Any:
    """
    Kubernetes readiness probe - checks the store and the snapshot feed
    """
    checks = {
        "store": settings.MOVE_STORE_BACKEND == "memory",
        "snapshots": hub.snapshots_received > 0 and hub.last_error is None,
        "api": True
    }

    if settings.MOVE_STORE_BACKEND == "redis":
        try:
            redis_client = await get_redis()
            await redis_client.ping()
            checks["store"] = True
        except Exception:
            pass

    all_healthy = all(checks.values())

    return HealthResponse(
        status="ready" if all_healthy else "not ready",
        checks=checks,
        version=settings.APP_VERSION,
    )
