"""Database Definition Loader — reads definitions from SQL tables, refreshes them from a primary.

Invariants:
    - reload_data() only reads; it never writes
    - update_data() with a primary replaces all rows in one transaction, then
      returns the primary's data
    - Missing dtstamp metadata is a LoadFailure (a snapshot needs a dtstamp)
    - SQLAlchemy errors surface as DatabaseError (a LoadFailure)
"""

import logging

from sqlalchemy import delete, select

from tzserver.core.boundary_protocols import DefinitionLoader, LoadedData, RawDefinition
from tzserver.core.errors import LoadFailure
from tzserver.infrastructure.database import DatabaseSessionManager
from tzserver.models.timezone_source import (
    ALIASES_KEY, DTSTAMP_KEY, SourceMetadata, TimezoneSpec,
)

logger = logging.getLogger(__name__)


class DatabaseDefinitionLoader:
    """DefinitionLoader over the timezone_specs / source_metadata tables."""

    def __init__(
        self,
        db: DatabaseSessionManager,
        primary: DefinitionLoader | None = None,
    ):
        self.db = db
        self.primary = primary

    async def reload_data(self) -> LoadedData:
        async with self.db.session() as session:
            specs = (
                await session.execute(select(TimezoneSpec).order_by(TimezoneSpec.tzid))
            ).scalars().all()
            metadata = {
                row.key: row.value
                for row in (await session.execute(select(SourceMetadata))).scalars()
            }
        dtstamp = metadata.get(DTSTAMP_KEY)
        if not dtstamp:
            raise LoadFailure("no dtstamp recorded in source_metadata", "database")
        return LoadedData(
            dtstamp=dtstamp,
            aliases_text=metadata.get(ALIASES_KEY, ""),
            definitions=[
                RawDefinition(s.tzid, s.spec, s.last_modified) for s in specs
            ],
        )

    async def update_data(self) -> LoadedData:
        """Pull from the primary source into the database, or re-read without one."""
        if self.primary is None:
            return await self.reload_data()
        data = await self.primary.update_data()
        await self.store(data)
        logger.info(
            f"Stored {len(data.definitions)} definition(s) from primary source",
            extra={"dtstamp": data.dtstamp},
        )
        return data

    async def store(self, data: LoadedData) -> None:
        """Replace every stored definition and the metadata with data."""
        async with self.db.session() as session:
            await session.execute(delete(TimezoneSpec))
            await session.execute(delete(SourceMetadata))
            session.add_all([
                TimezoneSpec(
                    tzid=d.tzid, spec=d.text, last_modified=d.stored_last_modified,
                )
                for d in data.definitions
            ])
            session.add_all([
                SourceMetadata(key=DTSTAMP_KEY, value=data.dtstamp),
                SourceMetadata(key=ALIASES_KEY, value=data.aliases_text),
            ])
            await session.commit()

    async def close(self) -> None:
        if self.primary is not None:
            await self.primary.close()
        await self.db.dispose()
