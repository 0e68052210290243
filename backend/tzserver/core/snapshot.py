"""Snapshot — the complete, immutable published view of the timezone data.

Invariants:
    - Built off to the side, published by a single reference swap
    - len(name_list) == len(summaries)
    - Every alias in aliases.by_alias targets a tzid in name_list
    - Never mutated after construction (mappings are read-only proxies)
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from tzserver.core.alias_resolver import AliasMaps
from tzserver.core.definition_index import (
    AliasedDefinition, DefinitionIndex, TimezoneDefinition,
)
from tzserver.core.summary_ledger import SummaryLedger


@dataclass(frozen=True)
class Snapshot:
    generation: int
    dtstamp: str
    name_list: tuple[str, ...] = ()
    definitions: Mapping[str, TimezoneDefinition] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    aliased: Mapping[tuple[str, str], AliasedDefinition] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    aliases: AliasMaps = field(default_factory=AliasMaps)
    summaries: SummaryLedger = field(default_factory=SummaryLedger)

    @property
    def fingerprints(self) -> dict[str, str]:
        return {tzid: d.fingerprint for tzid, d in self.definitions.items()}

    def fingerprint(self, tzid: str) -> str | None:
        definition = self.definitions.get(tzid)
        return definition.fingerprint if definition else None

    def aliased_for(self, alias: str) -> AliasedDefinition | None:
        tzid = self.aliases.from_alias(alias)
        if tzid is None:
            return None
        return self.aliased.get((tzid, alias))


def snapshot_from_index(
    index: DefinitionIndex, aliases: AliasMaps, generation: int, dtstamp: str,
) -> Snapshot:
    """Freeze a fully built DefinitionIndex into a publishable Snapshot."""
    return Snapshot(
        generation=generation,
        dtstamp=dtstamp,
        name_list=tuple(index.name_list),
        definitions=MappingProxyType(dict(index.definitions)),
        aliased=MappingProxyType(dict(index.aliased)),
        aliases=aliases,
        summaries=index.ledger,
    )
