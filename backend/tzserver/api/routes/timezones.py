"""Timezone Query Routes — listing, search, definitions and aliases.

Invariants:
    - Unknown identifiers (neither canonical nor alias) return 404 MISSING_TZID
    - Repeated changedsince, name or format parameters return 400
    - Canonical ids win over aliases of the same name
    - ics responses carry the stored text byte-for-byte
    - /timezones/find is declared before /timezones/{tzid:path}
"""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from tzserver.api.dependencies import get_store, single_query_param
from tzserver.core.errors import UnknownTimezoneError
from tzserver.schemas.timezone import TimezoneList, TimezoneSummary
from tzserver.services.data_store import DataStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["timezones"])

ICAL_MEDIA_TYPE = "text/calendar"
JCAL_MEDIA_TYPE = "application/calendar+json"


@router.get(
    "/timezones", response_model=TimezoneList,
    dependencies=[Depends(single_query_param("changedsince"))],
)
async def list_timezones(
    changedsince: str | None = Query(None),
    store: DataStore = Depends(get_store),
):
    """List timezone summaries, optionally only those changed since a UTC date-time."""
    # dtstamp read first: a swap in between can only make it older than the records
    dtstamp = await store.get_dtstamp()
    records = await store.get_summaries(changedsince)
    return TimezoneList(
        dtstamp=dtstamp,
        timezones=[TimezoneSummary.from_record(r) for r in records],
    )


@router.get(
    "/timezones/find", response_model=TimezoneList,
    dependencies=[Depends(single_query_param("name"))],
)
async def find_timezones(
    name: str = Query(..., min_length=1),
    store: DataStore = Depends(get_store),
):
    """Summaries of timezones whose id or alias contains name."""
    dtstamp = await store.get_dtstamp()
    records = await store.find_summaries(name)
    return TimezoneList(
        dtstamp=dtstamp,
        timezones=[TimezoneSummary.from_record(r) for r in records],
    )


@router.get(
    "/timezones/{tzid:path}",
    dependencies=[Depends(single_query_param("format"))],
)
async def get_timezone(
    tzid: str = Path(..., min_length=1),
    format: Literal["ics", "jcal"] = Query("ics"),
    store: DataStore = Depends(get_store),
):
    """One definition, as iCalendar text or jCal, by canonical id or alias."""
    if format == "jcal":
        transcoded = await store.get_transcoded_timezone(tzid)
        if transcoded is None:
            transcoded = await store.get_aliased_transcoded_timezone(tzid)
        if transcoded is None:
            raise UnknownTimezoneError(tzid)
        return JSONResponse(content=transcoded, media_type=JCAL_MEDIA_TYPE)

    text = await store.get_cached_definition(tzid)
    if text is None:
        text = await store.get_aliased_cached_definition(tzid)
    if text is None:
        raise UnknownTimezoneError(tzid)
    return Response(content=text, media_type=ICAL_MEDIA_TYPE)


@router.get("/aliases", response_class=PlainTextResponse)
async def get_aliases(store: DataStore = Depends(get_store)):
    """The alias source exactly as loaded."""
    return PlainTextResponse(await store.get_aliases_str() or "")
