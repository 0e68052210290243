"""Store Factory — wires loader, codec and cache settings into a DataStore.

Invariants:
    - Exactly one loader per store, chosen by settings.data_source
    - The database loader gets a file primary only when primary_data_dir is set
"""

import logging

from tzserver.config import Settings
from tzserver.core.boundary_protocols import DefinitionLoader
from tzserver.core.domain_types import DataSourceKind
from tzserver.core.expansion_cache import ExpansionCache
from tzserver.infrastructure.database import DatabaseSessionManager
from tzserver.infrastructure.db_loader import DatabaseDefinitionLoader
from tzserver.infrastructure.file_loader import FileDefinitionLoader
from tzserver.infrastructure.ical_codec import IcalendarParser, JCalTranscoder
from tzserver.services.data_store import DataStore

logger = logging.getLogger(__name__)


def build_loader(settings: Settings) -> DefinitionLoader:
    if settings.data_source is DataSourceKind.DATABASE:
        primary = (
            FileDefinitionLoader(settings.primary_data_dir)
            if settings.primary_data_dir else None
        )
        db = DatabaseSessionManager(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
        return DatabaseDefinitionLoader(db, primary=primary)
    return FileDefinitionLoader(settings.data_dir)


def build_store(settings: Settings) -> DataStore:
    """Create the DataStore described by settings (nothing is loaded yet)."""
    loader = build_loader(settings)
    logger.info(f"Using {settings.data_source.value} timezone source")
    return DataStore(
        loader,
        IcalendarParser(),
        JCalTranscoder(),
        name=settings.store_name,
        refresh_interval_seconds=settings.refresh_interval_seconds,
        expansions=ExpansionCache(settings.expansion_cache_max_entries),
    )
