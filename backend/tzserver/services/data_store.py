"""Data Store — reload/refresh lifecycle and read API over the published Snapshot.

Invariants:
    - Readers take one Snapshot reference per call; publication is a single assignment
    - At most one reload runs at a time (asyncio.Lock)
    - While a reload runs, other readers keep the prior Snapshot; with no prior
      Snapshot they wait for, and share, the outcome of that one attempt
    - A failed reload never replaces the published Snapshot
    - Published dtstamp never decreases
    - Bad definitions are skipped and reported in ReloadResult.failures
    - Lookups of unknown identifiers return None, never raise

Design Decisions:
    - Staleness flag is per instance, not per process
    - Snapshot build runs in a worker thread (asyncio.to_thread): readers keep
      serving the prior Snapshot while the next one is parsed
    - Background-triggered reload failures are logged; forced update() failures raise
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from tzserver.core.alias_resolver import resolve_aliases
from tzserver.core.boundary_protocols import (
    DefinitionLoader, DefinitionParser, DefinitionTranscoder, LoadedData,
)
from tzserver.core.definition_index import DefinitionIndex
from tzserver.core.domain_types import ExpansionKey, Stat, StoreState
from tzserver.core.errors import (
    ErrorContext, LoadFailure, ParseFailureError, StoreStoppedError,
)
from tzserver.core.expansion_cache import ExpansionCache
from tzserver.core.snapshot import Snapshot, snapshot_from_index
from tzserver.core.summary_ledger import SummaryRecord
from tzserver.core.timestamps import normalize_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestFailure:
    """One identifier skipped during a reload."""
    tzid: str
    code: str
    message: str


@dataclass(frozen=True)
class ReloadResult:
    """Outcome of one successful reload."""
    generation: int
    dtstamp: str
    loaded: int
    failures: list[IngestFailure] = field(default_factory=list)


class DataStore:
    """Cached timezone data with atomic snapshot replacement."""

    def __init__(
        self,
        loader: DefinitionLoader,
        parser: DefinitionParser,
        transcoder: DefinitionTranscoder,
        *,
        name: str = "tzdata",
        refresh_interval_seconds: float | None = None,
        expansions: ExpansionCache | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.refresh_interval_seconds = refresh_interval_seconds
        self.expansions = expansions if expansions is not None else ExpansionCache()
        self.last_result: ReloadResult | None = None
        self._loader = loader
        self._parser = parser
        self._transcoder = transcoder
        self._clock = clock
        self._snapshot: Snapshot | None = None
        self._state = StoreState.PENDING_RELOAD
        self._stale = True
        self._completed_attempts = 0
        self._loaded_at: float | None = None
        self._reload_lock = asyncio.Lock()

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def snapshot(self) -> Snapshot | None:
        """Currently published snapshot, without a freshness check."""
        return self._snapshot

    # ─── Lifecycle ──────────────────────────────────────────────

    def refresh(self) -> None:
        """Mark the data stale; the next accessor reloads."""
        if self._state is StoreState.STOPPED:
            return
        self._stale = True
        if self._state is StoreState.FRESH:
            self._state = StoreState.PENDING_RELOAD

    async def update(self) -> ReloadResult:
        """Reload now from the primary source. Raises LoadFailure on failure."""
        if self._state is StoreState.STOPPED:
            raise StoreStoppedError()
        async with self._reload_lock:
            if self._state is StoreState.STOPPED:
                raise StoreStoppedError()
            return await self._reload(self._loader.update_data, "update")

    async def stop(self) -> None:
        """Stop reloading, drop cached expansions and release loader resources."""
        if self._state is StoreState.STOPPED:
            return
        async with self._reload_lock:
            self._state = StoreState.STOPPED
            self.expansions.clear()
            await self._loader.close()
        logger.info(f"{self.name} stopped")

    def _needs_reload(self) -> bool:
        if self._state is StoreState.STOPPED:
            return False
        if self._stale or self._snapshot is None:
            return True
        if self.refresh_interval_seconds and self._loaded_at is not None:
            return self._clock() - self._loaded_at >= self.refresh_interval_seconds
        return False

    async def _current(self) -> Snapshot | None:
        """Return the published snapshot, reloading first if stale."""
        if not self._needs_reload():
            return self._snapshot
        if self._reload_lock.locked() and self._snapshot is not None:
            return self._snapshot
        # An attempt finishing while we wait is our outcome too, success or not
        completed = self._completed_attempts
        async with self._reload_lock:
            if self._completed_attempts == completed and self._needs_reload():
                try:
                    await self._reload(self._loader.reload_data, "reload")
                except LoadFailure as e:
                    logger.warning(
                        f"{self.name} background reload failed, keeping "
                        f"generation {self._generation()}: {e.message}",
                        extra={"error_code": e.code},
                    )
        return self._snapshot

    async def _reload(
        self, fetch: Callable[[], Awaitable[LoadedData]], reason: str,
    ) -> ReloadResult:
        self._state = StoreState.RELOADING
        self._stale = False
        try:
            data = await fetch()
            snapshot, failures = await asyncio.to_thread(self._build, data)
        except (LoadFailure, asyncio.CancelledError):
            self._settle_after_failure()
            raise
        except Exception as e:
            self._settle_after_failure()
            logger.error(f"{self.name} {reason} failed: {e}", exc_info=True)
            raise LoadFailure(
                str(e), reason,
                ErrorContext(generation=self._generation()),
            ) from e
        finally:
            self._completed_attempts += 1

        self._publish(snapshot)
        result = ReloadResult(
            generation=snapshot.generation,
            dtstamp=snapshot.dtstamp,
            loaded=len(snapshot.name_list),
            failures=failures,
        )
        self.last_result = result
        logger.info(
            f"{self.name} {reason}: published generation {snapshot.generation} "
            f"with {result.loaded} timezone(s), {len(failures)} failure(s)",
            extra={"generation": snapshot.generation, "dtstamp": snapshot.dtstamp},
        )
        return result

    def _settle_after_failure(self) -> None:
        if self._snapshot is None:
            self._stale = True
        self._state = (
            StoreState.PENDING_RELOAD if self._stale else StoreState.FRESH
        )

    def _publish(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        self._loaded_at = self._clock()
        self._state = (
            StoreState.PENDING_RELOAD if self._stale else StoreState.FRESH
        )
        self.expansions.prune(snapshot.fingerprints)

    def _generation(self) -> int:
        return self._snapshot.generation if self._snapshot else 0

    def _build(self, data: LoadedData) -> tuple[Snapshot, list[IngestFailure]]:
        """Build the next snapshot from loader output. Runs off the event loop."""
        previous = self._snapshot
        try:
            dtstamp = normalize_utc(data.dtstamp)
        except ValueError:
            raise LoadFailure(f"invalid dtstamp {data.dtstamp!r}", "loader")
        if previous is not None and dtstamp < previous.dtstamp:
            logger.warning(
                f"{self.name} source dtstamp {dtstamp} is older than "
                f"{previous.dtstamp}; keeping the newer value",
            )
            dtstamp = previous.dtstamp

        names = [d.tzid for d in data.definitions]
        aliases = resolve_aliases(data.aliases_text).restricted_to(names)
        index = DefinitionIndex(self._parser, self._transcoder, aliases, dtstamp)

        failures: list[IngestFailure] = []
        for raw in data.definitions:
            try:
                index.ingest(raw.tzid, raw.text, raw.stored_last_modified)
            except ParseFailureError as e:
                failures.append(IngestFailure(raw.tzid, e.code, e.message))
                logger.warning(
                    f"Skipping {raw.tzid}: {e.message}",
                    extra={"tzid": raw.tzid, "error_code": e.code},
                )

        snapshot = snapshot_from_index(
            index,
            aliases.restricted_to(index.definitions),
            generation=self._generation() + 1,
            dtstamp=dtstamp,
        )
        return snapshot, failures

    # ─── Read API ───────────────────────────────────────────────

    async def get_dtstamp(self) -> str:
        """Dataset dtstamp. Raises LoadFailure if nothing was ever loaded."""
        snapshot = await self._current()
        if snapshot is None:
            raise LoadFailure("no timezone data has been loaded", "store")
        return snapshot.dtstamp

    async def from_alias(self, alias: str) -> str | None:
        snapshot = await self._current()
        return snapshot.aliases.from_alias(alias) if snapshot else None

    async def get_aliases_str(self) -> str | None:
        snapshot = await self._current()
        return snapshot.aliases.text if snapshot else None

    async def find_aliases(self, tzid: str) -> list[str]:
        """Sorted aliases of tzid; empty when it has none or is unknown."""
        snapshot = await self._current()
        if snapshot is None:
            return []
        return list(snapshot.aliases.find_aliases(tzid) or ())

    async def get_name_list(self) -> list[str]:
        snapshot = await self._current()
        return list(snapshot.name_list) if snapshot else []

    async def get_cached_definition(self, tzid: str) -> str | None:
        definition = await self._definition(tzid)
        return definition.raw_text if definition else None

    async def get_all_cached_definitions(self) -> list[str]:
        snapshot = await self._current()
        if snapshot is None:
            return []
        return [snapshot.definitions[tzid].raw_text for tzid in snapshot.name_list]

    async def get_parsed_timezone(self, tzid: str) -> Any | None:
        """Parsed VTIMEZONE component. Shared: callers must not mutate it."""
        definition = await self._definition(tzid)
        return definition.timezone if definition else None

    async def get_transcoded_timezone(self, tzid: str) -> Any | None:
        definition = await self._definition(tzid)
        return definition.transcoded if definition else None

    async def get_aliased_cached_definition(self, alias: str) -> str | None:
        aliased = await self._aliased(alias)
        return aliased.raw_text if aliased else None

    async def get_aliased_parsed_timezone(self, alias: str) -> Any | None:
        aliased = await self._aliased(alias)
        return aliased.timezone if aliased else None

    async def get_aliased_transcoded_timezone(self, alias: str) -> Any | None:
        aliased = await self._aliased(alias)
        return aliased.transcoded if aliased else None

    async def get_summaries(self, changed_since: str | None = None) -> list[SummaryRecord]:
        """Summary records, optionally only those changed after changed_since."""
        snapshot = await self._current()
        if snapshot is None:
            return []
        return snapshot.summaries.changed_since(changed_since)

    async def find_ids(self, value: str) -> list[str]:
        """Canonical ids whose id or any alias contains value (case-insensitive)."""
        snapshot = await self._current()
        if snapshot is None:
            return []
        return sorted(_matching_ids(snapshot, value))

    async def find_summaries(self, value: str) -> list[SummaryRecord]:
        snapshot = await self._current()
        if snapshot is None:
            return []
        return snapshot.summaries.for_ids(_matching_ids(snapshot, value))

    async def get_fingerprint(self, tzid: str) -> str | None:
        """Version tag of tzid's current definition; pass it back to set_expanded."""
        snapshot = await self._current()
        return snapshot.fingerprint(tzid) if snapshot else None

    async def get_expanded(self, key: ExpansionKey) -> Any | None:
        snapshot = await self._current()
        fingerprint = snapshot.fingerprint(key.tzid) if snapshot else None
        if fingerprint is None:
            return None
        return self.expansions.get(key, fingerprint)

    async def set_expanded(self, key: ExpansionKey, value: Any, fingerprint: str) -> None:
        """Cache an expansion computed against the definition tagged fingerprint.

        The value is dropped when key.tzid is unknown or its definition was
        replaced after the caller read fingerprint.
        """
        snapshot = await self._current()
        current = snapshot.fingerprint(key.tzid) if snapshot else None
        if current is None or current != fingerprint:
            logger.debug(
                f"Not caching expansion for {key.tzid}: definition "
                f"{'unknown' if current is None else 'changed'}",
                extra={"tzid": key.tzid},
            )
            return
        self.expansions.put(key, value, fingerprint)

    def get_stats(self) -> list[Stat]:
        """Diagnostics pairs. Does not trigger a reload."""
        snapshot = self._snapshot
        stats: list[Stat] = []
        if snapshot is None:
            stats.append(Stat(f"{self.name} #tzs", "Unavailable"))
        else:
            stats.append(Stat(f"{self.name} #tzs", str(len(snapshot.name_list))))
        stats.append(Stat(f"{self.name} dtstamp", snapshot.dtstamp if snapshot else ""))
        stats.append(Stat(f"{self.name} cached expansions", str(len(self.expansions))))
        stats.append(Stat(f"{self.name} generation", str(self._generation())))
        return stats

    async def _definition(self, tzid: str):
        snapshot = await self._current()
        return snapshot.definitions.get(tzid) if snapshot else None

    async def _aliased(self, alias: str):
        snapshot = await self._current()
        return snapshot.aliased_for(alias) if snapshot else None


def _matching_ids(snapshot: Snapshot, value: str) -> set[str]:
    needle = value.lower()
    matches = {tzid for tzid in snapshot.name_list if needle in tzid.lower()}
    matches.update(
        tzid for alias, tzid in snapshot.aliases.by_alias.items()
        if needle in alias.lower()
    )
    return matches
