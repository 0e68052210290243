"""File Definition Loader — reads a timezone data directory.

Layout:
    <root>/zoneinfo/**/<tzid>.ics   one definition per file, tzid = relative path
    <root>/aliases.txt              alias source (optional)
    <root>/info.txt                 "buildTime=" or "dtstamp=" (optional)

Invariants:
    - Definition text is returned exactly as read (UTF-8)
    - Definitions are returned sorted by tzid
    - Any OSError becomes LoadFailure
    - Without info.txt the dtstamp is the newest file mtime

Design Decisions:
    - Blocking file IO runs in asyncio.to_thread
    - No primary authority behind a directory: update_data == reload_data
"""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

from tzserver.core.boundary_protocols import LoadedData, RawDefinition
from tzserver.core.errors import LoadFailure
from tzserver.core.timestamps import to_utc_stamp

logger = logging.getLogger(__name__)

ZONEINFO_DIR = "zoneinfo"
ALIASES_FILE = "aliases.txt"
INFO_FILE = "info.txt"
DEFINITION_SUFFIX = ".ics"
_DTSTAMP_KEYS = ("dtstamp", "buildTime")


class FileDefinitionLoader:
    """DefinitionLoader over a directory tree."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    async def reload_data(self) -> LoadedData:
        return await asyncio.to_thread(self._read_all)

    async def update_data(self) -> LoadedData:
        return await self.reload_data()

    async def close(self) -> None:
        return None

    def _read_all(self) -> LoadedData:
        zoneinfo = self.root / ZONEINFO_DIR
        if not zoneinfo.is_dir():
            raise LoadFailure(f"{zoneinfo} is not a directory", "file")
        try:
            paths = sorted(zoneinfo.rglob(f"*{DEFINITION_SUFFIX}"))
            definitions = [
                RawDefinition(
                    tzid=path.relative_to(zoneinfo).with_suffix("").as_posix(),
                    text=_read_verbatim(path),
                )
                for path in paths
            ]
            aliases_path = self.root / ALIASES_FILE
            aliases_text = (
                _read_verbatim(aliases_path)
                if aliases_path.is_file() else ""
            )
            dtstamp = self._read_dtstamp(paths)
        except (OSError, UnicodeDecodeError) as e:
            raise LoadFailure(str(e), "file")

        definitions.sort(key=lambda d: d.tzid)
        logger.info(
            f"Read {len(definitions)} definition(s) from {self.root}",
            extra={"dtstamp": dtstamp},
        )
        return LoadedData(
            dtstamp=dtstamp, aliases_text=aliases_text, definitions=definitions,
        )

    def _read_dtstamp(self, paths: list[Path]) -> str:
        info_path = self.root / INFO_FILE
        if info_path.is_file():
            for line in info_path.read_text(encoding="utf-8").splitlines():
                key, sep, value = line.partition("=")
                if sep and key.strip() in _DTSTAMP_KEYS and value.strip():
                    return value.strip()
        newest = max((p.stat().st_mtime for p in paths), default=0.0)
        return to_utc_stamp(datetime.fromtimestamp(newest, tz=timezone.utc))


def _read_verbatim(path: Path) -> str:
    # read_text would translate CRLF line endings
    return path.read_bytes().decode("utf-8")
