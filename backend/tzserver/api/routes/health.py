"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 until a snapshot has been published (readiness)
    - Neither probe triggers a reload
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from tzserver.api.dependencies import get_store
from tzserver.services.data_store import DataStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "tzserver",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(store: DataStore = Depends(get_store)):
    """Readiness probe — timezone data must be loaded."""
    snapshot = store.snapshot
    if snapshot is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "timezone_data_unavailable",
                "state": store.state.value,
            },
        )
    return {
        "status": "ready",
        "checks": {
            "timezones": len(snapshot.name_list),
            "generation": snapshot.generation,
            "state": store.state.value,
        },
    }
