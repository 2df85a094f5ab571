"""Health check endpoints."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter

from stockpool.core.config import settings
from stockpool.core.logging import get_logger
from stockpool.core.rate_limiter import get_tushare_limiter
from stockpool.schemas.common import HealthResponse


router = APIRouter(prefix="/health")

logger = get_logger("health")


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the API and its configuration.",
)
async def health_check() -> HealthResponse:
    """
    Report whether the service can reach its upstream.

    No upstream call is made; a missing Tushare token marks the service
    as degraded because every data endpoint would fail. The shared rate
    limiter state shows how many upstream calls this process has made.
    """
    checks = {
        "tushare_token": bool(settings.tushare_token),
    }
    status = "healthy" if all(checks.values()) else "degraded"
    if status != "healthy":
        logger.warning("Health check degraded: TUSHARE_TOKEN not configured")

    return HealthResponse(
        status=status,
        version=settings.app_version,
        timestamp=datetime.now(UTC),
        checks=checks,
        rate_limiter=get_tushare_limiter().status(),
    )


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the API process is alive.",
)
async def liveness_check() -> dict:
    """Kubernetes-style liveness probe."""
    return {"status": "alive"}
