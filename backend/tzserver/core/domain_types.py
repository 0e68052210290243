"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UtcStamp marks strings already normalized by core/timestamps.py
    - StoreState encodes the reload lifecycle; no raw string matching
    - ExpansionKey is hashable and immutable (dict key in ExpansionCache)

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, NewType


# ─── Identity Types ──────────────────────────────────────────────

# Fixed-width UTC date-time, e.g. "2020-01-01T00:00:00Z"
UtcStamp = NewType("UtcStamp", str)


# ─── Enums ───────────────────────────────────────────────────────

class StoreState(str, Enum):
    """DataStore lifecycle states."""
    FRESH = "fresh"
    PENDING_RELOAD = "pending_reload"
    RELOADING = "reloading"
    STOPPED = "stopped"


class DataSourceKind(str, Enum):
    """Where definitions are loaded from."""
    FILE = "file"
    DATABASE = "database"


# ─── Value Types ─────────────────────────────────────────────────

class Stat(NamedTuple):
    """One (label, value) diagnostics pair."""
    label: str
    value: str


@dataclass(frozen=True)
class ExpansionKey:
    """Identifies one expansion: a timezone over a date range."""
    tzid: str
    start: str
    end: str
