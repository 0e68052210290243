"""Timezone Schemas — Pydantic response models for the query API.

Invariants:
    - Field names follow the timezone-service wire vocabulary (tzid, last_modified, aliases)
    - Models are built from core records, never from ORM rows
"""

from pydantic import BaseModel, Field

from tzserver.core.summary_ledger import SummaryRecord


class TimezoneSummary(BaseModel):
    """Change-tracking entry for one timezone."""
    tzid: str
    last_modified: str | None = None
    aliases: list[str] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: SummaryRecord) -> "TimezoneSummary":
        return cls(
            tzid=record.tzid,
            last_modified=record.last_modified,
            aliases=list(record.aliases),
        )


class TimezoneList(BaseModel):
    """Response for list and find queries."""
    dtstamp: str
    timezones: list[TimezoneSummary]


class StatEntry(BaseModel):
    label: str
    value: str


class IngestFailureOut(BaseModel):
    tzid: str
    code: str
    message: str


class ReloadResultOut(BaseModel):
    """Outcome of a forced update."""
    generation: int
    dtstamp: str
    loaded: int
    failures: list[IngestFailureOut] = Field(default_factory=list)
