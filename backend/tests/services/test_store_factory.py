"""Tests for store wiring from Settings."""

from tzserver.config import Settings
from tzserver.core.domain_types import DataSourceKind
from tzserver.infrastructure.db_loader import DatabaseDefinitionLoader
from tzserver.infrastructure.file_loader import FileDefinitionLoader
from tzserver.services.data_store import DataStore
from tzserver.services.store_factory import build_loader, build_store


def test_file_source_is_default(tmp_path):
    loader = build_loader(Settings(data_dir=str(tmp_path)))
    assert isinstance(loader, FileDefinitionLoader)
    assert loader.root == tmp_path


async def test_database_source_without_primary(tmp_path):
    settings = Settings(
        data_source=DataSourceKind.DATABASE,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'tz.db'}",
    )
    loader = build_loader(settings)
    assert isinstance(loader, DatabaseDefinitionLoader)
    assert loader.primary is None
    await loader.close()


async def test_database_source_with_file_primary(tmp_path):
    settings = Settings(
        data_source="database",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'tz.db'}",
        primary_data_dir=str(tmp_path / "primary"),
    )
    loader = build_loader(settings)
    assert isinstance(loader.primary, FileDefinitionLoader)
    await loader.close()


def test_build_store_applies_cache_settings(tmp_path):
    store = build_store(Settings(
        data_dir=str(tmp_path),
        store_name="zones",
        refresh_interval_seconds=300,
        expansion_cache_max_entries=5,
    ))
    assert isinstance(store, DataStore)
    assert store.name == "zones"
    assert store.refresh_interval_seconds == 300
    assert store.expansions.max_entries == 5
    assert store.snapshot is None


def test_postgres_url_rewritten_for_asyncpg():
    settings = Settings(database_url="postgresql://u:p@db/tz")
    assert settings.database_url == "postgresql+asyncpg://u:p@db/tz"
