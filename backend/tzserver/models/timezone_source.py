"""Timezone Source ORM — stored definitions and dataset metadata.

Invariants:
    - tzid is the primary key: one stored definition per canonical identifier
    - spec holds the definition text exactly as it will be served
    - source_metadata rows "dtstamp" and "aliases" describe the whole dataset

Design Decisions:
    - last_modified kept as the source's string, normalized at ingest
    - Key/value metadata table over dedicated columns: the alias blob is
      re-served verbatim
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tzserver.db.base import Base

DTSTAMP_KEY = "dtstamp"
ALIASES_KEY = "aliases"


class TimezoneSpec(Base):
    """One stored timezone definition."""
    __tablename__ = "timezone_specs"

    tzid: Mapped[str] = mapped_column(String(255), primary_key=True)
    spec: Mapped[str] = mapped_column(Text, nullable=False)
    last_modified: Mapped[str | None] = mapped_column(String(32), nullable=True)


class SourceMetadata(Base):
    """Dataset-wide values (dtstamp, alias source)."""
    __tablename__ = "source_metadata"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
