"""Summary Ledger — per-identifier change records with "changed since" filtering.

Invariants:
    - One SummaryRecord per canonical identifier, in ingest order
    - last_modified is None or a fixed-width UTC stamp (see core/timestamps.py)
    - Records without last_modified match every cutoff
    - A later cutoff never returns a record an earlier cutoff excluded
"""

from dataclasses import dataclass

from tzserver.core.errors import InvalidTimestampError
from tzserver.core.timestamps import normalize_utc


@dataclass(frozen=True)
class SummaryRecord:
    """Change-tracking entry for one canonical identifier."""
    tzid: str
    last_modified: str | None = None
    aliases: tuple[str, ...] = ()


class SummaryLedger:
    """Ordered summary records for one snapshot."""

    def __init__(self, records: list[SummaryRecord] | None = None):
        self._records: list[SummaryRecord] = list(records or [])

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def append(self, record: SummaryRecord) -> None:
        self._records.append(record)

    def changed_since(self, changed_since: str | None) -> list[SummaryRecord]:
        """Records modified strictly after changed_since; all records for None.

        The cutoff may be in extended or basic ISO-8601 form; it is normalized
        before the string comparison.
        """
        if changed_since is None:
            return list(self._records)
        try:
            cutoff = normalize_utc(changed_since)
        except ValueError:
            raise InvalidTimestampError(changed_since)
        return [
            r for r in self._records
            if r.last_modified is None or r.last_modified > cutoff
        ]

    def for_ids(self, tzids: set[str]) -> list[SummaryRecord]:
        return [r for r in self._records if r.tzid in tzids]
