"""Boundary Protocols — contracts between the cache core and its external collaborators.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Loader IO accessed only through DefinitionLoader
    - Parsed/transcoded forms are opaque to the core (typed as Any)

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Loader methods are async because implementations do IO; parser and
      transcoder are sync because they are CPU-only
"""

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class RawDefinition:
    """One stored definition as supplied by a loader."""
    tzid: str
    text: str
    stored_last_modified: str | None = None


@dataclass(frozen=True)
class LoadedData:
    """Everything a loader supplies for one snapshot."""
    dtstamp: str
    aliases_text: str = ""
    definitions: list[RawDefinition] = field(default_factory=list)


class DefinitionLoader(Protocol):
    """Contract for definition sources — implemented by shell."""
    async def reload_data(self) -> LoadedData: ...
    async def update_data(self) -> LoadedData: ...
    async def close(self) -> None: ...


class DefinitionParser(Protocol):
    """Contract for turning raw definition text into a structured calendar."""
    def parse(self, raw_text: str, tzid: str | None = None) -> Any: ...
    def find_timezone(self, calendar: Any) -> Any | None: ...
    def last_modified(self, component: Any) -> str | None: ...
    def with_identifier(self, calendar: Any, tzid: str) -> Any: ...
    def serialize(self, component: Any) -> str: ...


class DefinitionTranscoder(Protocol):
    """Contract for the alternate wire representation of a calendar."""
    def transcode(self, calendar: Any) -> Any: ...
