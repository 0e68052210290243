"""Admin Routes — refresh, forced update and diagnostics.

Invariants:
    - POST /admin/refresh only marks the store stale (202, no reload in the request)
    - POST /admin/update is bounded by settings.update_timeout_seconds
    - GET /stats never triggers a reload
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, status

from tzserver.api.dependencies import get_store
from tzserver.config import get_settings
from tzserver.core.errors import ErrorCategory, LoadFailure
from tzserver.schemas.timezone import IngestFailureOut, ReloadResultOut, StatEntry
from tzserver.services.data_store import DataStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["admin"])


@router.get("/stats", response_model=list[StatEntry])
async def get_stats(store: DataStore = Depends(get_store)):
    """Identifier count, dtstamp and expansion-cache size."""
    return [StatEntry(label=s.label, value=s.value) for s in store.get_stats()]


@router.post("/admin/refresh", status_code=status.HTTP_202_ACCEPTED)
async def request_refresh(store: DataStore = Depends(get_store)):
    """Flag the data stale; the next query reloads it."""
    store.refresh()
    return {"status": "refresh_requested", "state": store.state.value}


@router.post("/admin/update", response_model=ReloadResultOut)
async def force_update(store: DataStore = Depends(get_store)):
    """Reload from the primary source now."""
    timeout = get_settings().update_timeout_seconds
    try:
        result = await asyncio.wait_for(store.update(), timeout=timeout)
    except asyncio.TimeoutError:
        raise LoadFailure(
            f"timed out after {timeout:g}s", "update",
            code="UPDATE_TIMEOUT", category=ErrorCategory.TIMEOUT,
        )
    return ReloadResultOut(
        generation=result.generation,
        dtstamp=result.dtstamp,
        loaded=result.loaded,
        failures=[
            IngestFailureOut(tzid=f.tzid, code=f.code, message=f.message)
            for f in result.failures
        ],
    )
