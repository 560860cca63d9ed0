# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints: health, readiness, metrics.
Pure HTTP layer, no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from hotline.core.config import settings
from hotline.core.dependencies import get_forward_repo, get_schedule
from hotline.models.domain import Schedule
from hotline.repositories.forward_state_repository import ForwardStateRepository

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness probe."""
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/ready")
def readiness_check(
    forward_repo: ForwardStateRepository = Depends(get_forward_repo),
    schedule: Schedule = Depends(get_schedule),
):
    """Readiness probe: roster loaded and forward store reachable."""
    if not forward_repo.ping():
        raise HTTPException(status_code=503, detail="Forward store unavailable")
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "timezone": schedule.timezone,
        "weekdays_scheduled": [r.key for r in schedule.days],
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
