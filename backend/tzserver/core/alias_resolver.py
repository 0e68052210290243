"""Alias Resolver — bidirectional alias <-> canonical id maps from an alias-source blob.

Invariants:
    - by_alias maps each alias to exactly one canonical id
    - by_tzid values are lexicographically sorted tuples
    - text is the source blob, verbatim
    - AliasMaps is never mutated after construction

Design Decisions:
    - Properties-style source: "alias=tzid", "alias: tzid" or "alias tzid",
      '#'/'!' comments, trailing backslash continues an entry
    - A repeated alias keeps its last definition (warned)
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

logger = logging.getLogger(__name__)

_COMMENT_PREFIXES = ("#", "!")
_SEPARATORS = ("=", ":")


@dataclass(frozen=True)
class AliasMaps:
    """Alias bookkeeping for one snapshot."""
    text: str = ""
    by_alias: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    by_tzid: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({}),
    )

    def from_alias(self, alias: str) -> str | None:
        return self.by_alias.get(alias)

    def find_aliases(self, tzid: str) -> tuple[str, ...] | None:
        return self.by_tzid.get(tzid)

    def restricted_to(self, names: Iterable[str]) -> "AliasMaps":
        """Drop aliases whose target is not in names or whose name is itself a canonical id."""
        present = set(names)
        kept: dict[str, str] = {}
        for alias, tzid in self.by_alias.items():
            if tzid not in present:
                logger.warning(
                    f"Dropping alias {alias}: target {tzid} not loaded",
                    extra={"tzid": tzid},
                )
                continue
            if alias in present:
                logger.warning(
                    f"Dropping alias {alias}: shadows a canonical identifier",
                    extra={"tzid": alias},
                )
                continue
            kept[alias] = tzid
        return build_alias_maps(self.text, kept)


def parse_alias_lines(text: str) -> dict[str, str]:
    """Parse the alias source into alias -> tzid, in source order."""
    by_alias: dict[str, str] = {}
    for lineno, line in _logical_lines(text):
        alias, tzid = _split_entry(line)
        if not alias or not tzid:
            logger.warning(f"Ignoring malformed alias line {lineno}: {line!r}")
            continue
        if alias in by_alias and by_alias[alias] != tzid:
            logger.warning(
                f"Alias {alias} redefined on line {lineno}: "
                f"{by_alias[alias]} -> {tzid}",
            )
        by_alias[alias] = tzid
    return by_alias


def _logical_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield (first line number, entry) pairs, joining backslash continuations."""
    pending: list[str] = []
    start = 0
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.lstrip()
        if not pending:
            if not line or line.startswith(_COMMENT_PREFIXES):
                continue
            start = lineno
        if _continues(line):
            pending.append(line[:-1])
            continue
        pending.append(line)
        yield start, "".join(pending).rstrip()
        pending = []
    if pending:
        yield start, "".join(pending).rstrip()


def _continues(line: str) -> bool:
    # An odd run of trailing backslashes escapes the line break
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def _split_entry(line: str) -> tuple[str, str]:
    """Split on the first unescaped '=', ':' or whitespace run."""
    key: list[str] = []
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\" and i + 1 < len(line):
            key.append(line[i + 1])
            i += 2
            continue
        if ch in _SEPARATORS or ch.isspace():
            break
        key.append(ch)
        i += 1
    value = line[i:].lstrip()
    if value[:1] in _SEPARATORS:
        value = value[1:].lstrip()
    return "".join(key), value


def build_alias_maps(text: str, by_alias: Mapping[str, str]) -> AliasMaps:
    """Invert by_alias into by_tzid with sorted alias tuples."""
    grouped: dict[str, set[str]] = {}
    for alias, tzid in by_alias.items():
        grouped.setdefault(tzid, set()).add(alias)
    by_tzid = {tzid: tuple(sorted(aliases)) for tzid, aliases in grouped.items()}
    return AliasMaps(
        text=text,
        by_alias=MappingProxyType(dict(by_alias)),
        by_tzid=MappingProxyType(by_tzid),
    )


def resolve_aliases(text: str) -> AliasMaps:
    """Build alias maps from the raw alias-source blob."""
    return build_alias_maps(text, parse_alias_lines(text))
