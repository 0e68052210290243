"""Expansion Cache — memoized range expansions, tied to the definition they came from.

Invariants:
    - put() overwrites any prior entry for the same key
    - An entry is returned only while its fingerprint matches the caller's
    - With max_entries set, size never exceeds it (least recently used evicted first)
    - Not part of the Snapshot: survives snapshot swaps, pruned per identifier

Design Decisions:
    - Fingerprint = digest of the raw definition text: an unchanged definition
      keeps its expansions across reloads, a replaced one loses them
    - threading.Lock around the OrderedDict: LRU reordering mutates on read
"""

import logging
import threading
from collections import OrderedDict
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from tzserver.core.domain_types import ExpansionKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    fingerprint: str | None
    value: Any


class ExpansionCache:
    """Key -> expansion memo with optional LRU bound."""

    def __init__(self, max_entries: int | None = None):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive or None")
        self.max_entries = max_entries
        self._entries: OrderedDict[ExpansionKey, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: ExpansionKey, fingerprint: str | None = None) -> Any | None:
        """Return the stored value, or None if absent or computed against another definition."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if fingerprint is not None and entry.fingerprint != fingerprint:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    def put(self, key: ExpansionKey, value: Any, fingerprint: str | None = None) -> None:
        with self._lock:
            self._entries[key] = _Entry(fingerprint, value)
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

    def prune(self, fingerprints: Mapping[str, str]) -> int:
        """Drop entries whose identifier is gone or whose definition changed."""
        with self._lock:
            stale = [
                key for key, entry in self._entries.items()
                if fingerprints.get(key.tzid) is None
                or (entry.fingerprint is not None
                    and fingerprints[key.tzid] != entry.fingerprint)
            ]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.info(f"Pruned {len(stale)} stale expansion(s)")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
