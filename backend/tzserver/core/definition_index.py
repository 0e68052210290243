"""Definition Index — builds the per-identifier contents of the next snapshot.

Invariants:
    - Canonical ids are unique; a second ingest of the same id is a CorruptEntryError
    - raw_text is stored byte-for-byte as supplied
    - Aliased artifacts are keyed by (tzid, alias), never by tzid alone
    - An ingest either registers every artifact for the id or none of them
    - len(name_list) == len(ledger) at all times

Design Decisions:
    - last_modified fallback: embedded LAST-MODIFIED -> stored value -> dtstamp
    - Aliased copies derived once at ingest, not per read; their raw_text keeps
      the canonical shape (full VCALENDAR or bare VTIMEZONE)
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Any

from tzserver.core.alias_resolver import AliasMaps
from tzserver.core.boundary_protocols import DefinitionParser, DefinitionTranscoder
from tzserver.core.errors import CorruptEntryError
from tzserver.core.summary_ledger import SummaryLedger, SummaryRecord
from tzserver.core.timestamps import normalize_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimezoneDefinition:
    """One canonical definition in all its representations."""
    tzid: str
    raw_text: str
    calendar: Any
    timezone: Any
    transcoded: Any
    last_modified: str | None
    fingerprint: str


@dataclass(frozen=True)
class AliasedDefinition:
    """A definition re-issued under an alias name."""
    tzid: str
    alias: str
    raw_text: str
    calendar: Any
    timezone: Any
    transcoded: Any


def fingerprint_of(raw_text: str) -> str:
    return hashlib.sha256(raw_text.encode("utf-8")).hexdigest()


class DefinitionIndex:
    """Accumulates definitions, aliased copies and summaries during one reload."""

    def __init__(
        self,
        parser: DefinitionParser,
        transcoder: DefinitionTranscoder,
        aliases: AliasMaps,
        dtstamp: str,
    ):
        self._parser = parser
        self._transcoder = transcoder
        self._aliases = aliases
        self._dtstamp = dtstamp
        self.definitions: dict[str, TimezoneDefinition] = {}
        self.aliased: dict[tuple[str, str], AliasedDefinition] = {}
        self.ledger = SummaryLedger()

    @property
    def name_list(self) -> list[str]:
        return sorted(self.definitions)

    def ingest(
        self, tzid: str, raw_text: str, stored_last_modified: str | None = None,
    ) -> SummaryRecord:
        """Parse, transcode and register one definition with its aliases."""
        if tzid in self.definitions:
            raise CorruptEntryError(tzid, "duplicate identifier in source")

        calendar = self._parser.parse(raw_text, tzid)
        component = self._parser.find_timezone(calendar)
        if component is None:
            raise CorruptEntryError(tzid, "no VTIMEZONE component")

        definition = TimezoneDefinition(
            tzid=tzid,
            raw_text=raw_text,
            calendar=calendar,
            timezone=component,
            transcoded=self._transcoder.transcode(calendar),
            last_modified=self._resolve_last_modified(
                tzid, component, stored_last_modified,
            ),
            fingerprint=fingerprint_of(raw_text),
        )
        aliases = self._aliases.find_aliases(tzid) or ()
        aliased = {
            (tzid, alias): self._derive_alias(definition, alias)
            for alias in aliases
        }
        record = SummaryRecord(
            tzid=tzid, last_modified=definition.last_modified, aliases=aliases,
        )

        self.definitions[tzid] = definition
        self.aliased.update(aliased)
        self.ledger.append(record)
        return record

    def _resolve_last_modified(
        self, tzid: str, component: Any, stored: str | None,
    ) -> str | None:
        for candidate in (self._parser.last_modified(component), stored, self._dtstamp):
            if not candidate:
                continue
            try:
                return normalize_utc(candidate)
            except ValueError:
                logger.warning(
                    f"Ignoring unparseable last-modified {candidate!r} for {tzid}",
                    extra={"tzid": tzid},
                )
        return None

    def _derive_alias(self, definition: TimezoneDefinition, alias: str) -> AliasedDefinition:
        calendar = self._parser.with_identifier(definition.calendar, alias)
        component = self._parser.find_timezone(calendar)
        # Same shape as the canonical text: bare VTIMEZONE in, bare VTIMEZONE out
        shape = component if _is_bare_timezone(definition.raw_text) else calendar
        return AliasedDefinition(
            tzid=definition.tzid,
            alias=alias,
            raw_text=self._parser.serialize(shape),
            calendar=calendar,
            timezone=component,
            transcoded=self._transcoder.transcode(calendar),
        )


def _is_bare_timezone(raw_text: str) -> bool:
    return raw_text.lstrip().upper().startswith("BEGIN:VTIMEZONE")
