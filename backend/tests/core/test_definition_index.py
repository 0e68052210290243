"""Tests for DefinitionIndex — ingest, last-modified fallback, aliased copies.

Invariants:
    - Duplicate or VTIMEZONE-less entries raise and leave the index unchanged
    - Aliased artifacts exist per (tzid, alias) and carry the alias as TZID
"""

import pytest

from tzserver.core.alias_resolver import resolve_aliases
from tzserver.core.definition_index import DefinitionIndex, fingerprint_of
from tzserver.core.errors import CorruptEntryError, ParseFailureError
from tzserver.core.snapshot import snapshot_from_index
from tests.tz_samples import (
    CORRUPT_DEFINITION, DTSTAMP, LONDON, NEW_YORK, US_EASTERN,
    bare_definition, london_definition, make_definition,
)


@pytest.fixture
def index(parser, transcoder):
    aliases = resolve_aliases(f"{US_EASTERN}={NEW_YORK}\nEST5EDT={NEW_YORK}\n")
    return DefinitionIndex(parser, transcoder, aliases, DTSTAMP)


def test_ingest_registers_definition(index):
    text = make_definition(NEW_YORK, "20200101T000000Z")
    record = index.ingest(NEW_YORK, text)
    definition = index.definitions[NEW_YORK]
    assert definition.raw_text == text
    assert definition.fingerprint == fingerprint_of(text)
    assert definition.timezone.name == "VTIMEZONE"
    assert definition.transcoded[0] == "vcalendar"
    assert record.last_modified == "2020-01-01T00:00:00Z"
    assert record.aliases == ("EST5EDT", US_EASTERN)


def test_last_modified_falls_back_to_stored_value(index):
    index.ingest(LONDON, london_definition(), "2019-05-05T10:00:00Z")
    assert index.definitions[LONDON].last_modified == "2019-05-05T10:00:00Z"


def test_last_modified_falls_back_to_dtstamp(index):
    record = index.ingest(LONDON, london_definition())
    assert record.last_modified == DTSTAMP


def test_unparseable_stored_value_is_skipped(index):
    record = index.ingest(LONDON, london_definition(), "not a date")
    assert record.last_modified == DTSTAMP


def test_embedded_last_modified_wins_over_stored(index):
    index.ingest(NEW_YORK, make_definition(NEW_YORK, "20200101T000000Z"), "2019-01-01T00:00:00Z")
    assert index.definitions[NEW_YORK].last_modified == "2020-01-01T00:00:00Z"


def test_duplicate_identifier_is_corrupt(index):
    index.ingest(NEW_YORK, make_definition(NEW_YORK))
    with pytest.raises(CorruptEntryError):
        index.ingest(NEW_YORK, make_definition(NEW_YORK))
    assert len(index.ledger) == 1


def test_missing_vtimezone_is_corrupt_and_registers_nothing(index):
    with pytest.raises(CorruptEntryError) as exc:
        index.ingest("Bad/Zone", CORRUPT_DEFINITION)
    assert exc.value.code == "CORRUPT_ENTRY"
    assert exc.value.tzid == "Bad/Zone"
    assert index.definitions == {}
    assert len(index.ledger) == 0


def test_unparseable_text_raises_parse_failure(index):
    with pytest.raises(ParseFailureError):
        index.ingest("Bad/Zone", "END:VCALENDAR\r\n")


def test_aliased_copies_keyed_by_pair(index, parser):
    index.ingest(NEW_YORK, make_definition(NEW_YORK))
    assert set(index.aliased) == {(NEW_YORK, US_EASTERN), (NEW_YORK, "EST5EDT")}
    eastern = index.aliased[(NEW_YORK, US_EASTERN)]
    est = index.aliased[(NEW_YORK, "EST5EDT")]
    assert str(eastern.timezone["TZID"]) == US_EASTERN
    assert str(est.timezone["TZID"]) == "EST5EDT"
    assert f"TZID:{US_EASTERN}" in eastern.raw_text
    assert f"TZID:{NEW_YORK}" not in eastern.raw_text


def test_aliased_text_of_full_calendar_is_full_calendar(index):
    index.ingest(NEW_YORK, make_definition(NEW_YORK))
    raw = index.aliased[(NEW_YORK, US_EASTERN)].raw_text
    assert raw.startswith("BEGIN:VCALENDAR")
    assert raw.rstrip().endswith("END:VCALENDAR")


def test_aliased_text_of_bare_timezone_stays_bare(index, parser):
    index.ingest(NEW_YORK, bare_definition(NEW_YORK))
    raw = index.aliased[(NEW_YORK, US_EASTERN)].raw_text
    assert raw.startswith("BEGIN:VTIMEZONE")
    assert raw.rstrip().endswith("END:VTIMEZONE")
    assert "VCALENDAR" not in raw
    assert f"TZID:{US_EASTERN}" in raw
    assert str(parser.find_timezone(parser.parse(raw))["TZID"]) == US_EASTERN


def test_aliased_copy_leaves_canonical_untouched(index):
    text = make_definition(NEW_YORK)
    index.ingest(NEW_YORK, text)
    canonical = index.definitions[NEW_YORK]
    assert str(canonical.timezone["TZID"]) == NEW_YORK
    assert canonical.raw_text == text


def test_name_list_is_sorted_and_matches_ledger(index):
    index.ingest(NEW_YORK, make_definition(NEW_YORK))
    index.ingest(LONDON, london_definition())
    assert index.name_list == [NEW_YORK, LONDON]
    assert len(index.name_list) == len(index.ledger)


def test_snapshot_from_index_freezes_contents(index):
    index.ingest(NEW_YORK, make_definition(NEW_YORK))
    aliases = resolve_aliases(f"{US_EASTERN}={NEW_YORK}\n")
    snapshot = snapshot_from_index(index, aliases, generation=1, dtstamp=DTSTAMP)
    assert snapshot.name_list == (NEW_YORK,)
    assert snapshot.aliased_for(US_EASTERN).alias == US_EASTERN
    assert snapshot.aliased_for("Nowhere") is None
    assert snapshot.fingerprint(NEW_YORK) == index.definitions[NEW_YORK].fingerprint
    with pytest.raises(TypeError):
        snapshot.definitions["X"] = None
