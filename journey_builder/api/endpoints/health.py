"""
Health check and metrics endpoints.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter

from journey_builder.core.config import get_settings
from journey_builder.observability.metrics import get_metrics_service

router = APIRouter()


@router.get(
    "/health",
    summary="Basic Health Check",
    description="Basic health check endpoint for load balancers and monitoring",
)
async def basic_health_check() -> Dict[str, Any]:
    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        },
        "components": {
            "sequences_api": {"configured": bool(settings.SEQUENCES_API_URL)},
            "ai_timing": {
                "enabled": settings.AI_TIMING_ENABLED,
                "configured": bool(settings.AI_TIMING_API_URL),
            },
        },
    }


@router.get("/metrics", summary="Service Metrics")
async def get_metrics() -> Dict[str, Any]:
    """Counters and timer summaries collected since startup."""
    settings = get_settings()
    if not settings.ENABLE_METRICS:
        return {"enabled": False}
    return {"enabled": True, **get_metrics_service().snapshot()}
