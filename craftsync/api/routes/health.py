"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 until the combination service is wired

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness gates traffic
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "craftsync-api",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe — store loaded and service wired."""
    service = getattr(request.app.state, "combination_service", None)
    if service is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "store_not_loaded"},
        )
    return {
        "status": "ready",
        "checks": {
            "combinations": len(service.store),
            "subscribers": service.broadcaster.subscriber_count,
        },
    }
