"""iCalendar Codec — icalendar-backed parser and jCal (RFC 7265) transcoder.

Invariants:
    - parse() always yields a VCALENDAR; bare VTIMEZONE text is wrapped first
    - with_identifier() never mutates its input calendar
    - transcode() output is JSON-safe (lists, dicts, str, int)
    - Every parser or transcoder failure surfaces as ParseFailureError

Design Decisions:
    - Alias copies made by serialize/re-parse instead of deepcopy: the copy is
      exactly what a client re-parsing the aliased text would see
    - jCal produced by icalendar's Component.to_jcal(), not a local tree walk
"""

import logging
from datetime import date
from typing import Any

from icalendar import Calendar, Component

from tzserver.core.errors import ParseFailureError
from tzserver.core.timestamps import to_utc_stamp

logger = logging.getLogger(__name__)

CAL_HEADER = "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//tzserver//timezones//EN\r\n"
CAL_TRAILER = "END:VCALENDAR\r\n"


class IcalendarParser:
    """DefinitionParser over the icalendar library."""

    def parse(self, raw_text: str, tzid: str | None = None) -> Calendar:
        text = raw_text
        if text.lstrip().upper().startswith("BEGIN:VTIMEZONE"):
            text = CAL_HEADER + text.strip() + "\r\n" + CAL_TRAILER
        try:
            calendar = Calendar.from_ical(text)
        except Exception as e:
            raise ParseFailureError(tzid, str(e))
        if getattr(calendar, "name", None) != "VCALENDAR":
            raise ParseFailureError(tzid, "top-level component is not VCALENDAR")
        return calendar

    def find_timezone(self, calendar: Calendar) -> Any | None:
        for component in calendar.subcomponents:
            if component.name == "VTIMEZONE":
                return component
        return None

    def last_modified(self, component: Any) -> str | None:
        value = component.get("LAST-MODIFIED")
        if value is None:
            return None
        dt = getattr(value, "dt", None)
        if not isinstance(dt, date):
            return None
        return to_utc_stamp(dt)

    def with_identifier(self, calendar: Calendar, tzid: str) -> Calendar:
        copy = self.parse(self.serialize(calendar), tzid)
        component = self.find_timezone(copy)
        if component is None:
            raise ParseFailureError(tzid, "no VTIMEZONE component to rename")
        component.pop("TZID", None)
        component.add("TZID", tzid)
        return copy

    def serialize(self, component: Component) -> str:
        """iCalendar text of a calendar or of a single component."""
        return component.to_ical().decode("utf-8")


class JCalTranscoder:
    """DefinitionTranscoder producing jCal arrays."""

    def transcode(self, calendar: Calendar) -> list:
        try:
            return calendar.to_jcal()
        except (ValueError, TypeError, AttributeError) as e:
            timezone = self._timezone_id(calendar)
            logger.warning(f"jCal conversion failed for {timezone}: {e}")
            raise ParseFailureError(timezone, f"jCal conversion failed: {e}")

    @staticmethod
    def _timezone_id(calendar: Calendar) -> str | None:
        for component in calendar.subcomponents:
            if component.name == "VTIMEZONE" and "TZID" in component:
                return str(component["TZID"])
        return None
