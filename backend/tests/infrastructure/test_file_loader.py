"""Tests for FileDefinitionLoader — directory layout, dtstamp sources, failures."""

import os

import pytest

from tzserver.core.errors import LoadFailure
from tzserver.infrastructure.file_loader import FileDefinitionLoader
from tests.tz_samples import LONDON, NEW_YORK, london_definition, make_definition


@pytest.fixture
def data_dir(tmp_path):
    zoneinfo = tmp_path / "zoneinfo"
    (zoneinfo / "America").mkdir(parents=True)
    (zoneinfo / "Europe").mkdir()
    (zoneinfo / "America" / "New_York.ics").write_text(
        make_definition(NEW_YORK), encoding="utf-8", newline="",
    )
    (zoneinfo / "Europe" / "London.ics").write_text(
        london_definition(), encoding="utf-8", newline="",
    )
    (zoneinfo / "README.txt").write_text("not a definition", encoding="utf-8")
    (tmp_path / "aliases.txt").write_text(
        "US/Eastern=America/New_York\n", encoding="utf-8",
    )
    (tmp_path / "info.txt").write_text(
        "version=2020a\nbuildTime=2020-06-01T00:00:00Z\n", encoding="utf-8",
    )
    return tmp_path


async def test_reads_definitions_sorted_by_identifier(data_dir):
    data = await FileDefinitionLoader(data_dir).reload_data()
    assert [d.tzid for d in data.definitions] == [NEW_YORK, LONDON]


async def test_definition_text_is_verbatim(data_dir):
    data = await FileDefinitionLoader(data_dir).reload_data()
    assert data.definitions[0].text == make_definition(NEW_YORK)


async def test_crlf_line_endings_survive_reading(data_dir):
    (data_dir / "aliases.txt").write_bytes(b"US/Eastern=America/New_York\r\n")
    data = await FileDefinitionLoader(data_dir).reload_data()
    assert data.aliases_text == "US/Eastern=America/New_York\r\n"
    assert "\r\n" in data.definitions[0].text
    assert data.definitions[0].text.count("\r\n") == make_definition(NEW_YORK).count("\r\n")


async def test_reads_aliases_and_build_time(data_dir):
    data = await FileDefinitionLoader(data_dir).reload_data()
    assert data.aliases_text == "US/Eastern=America/New_York\n"
    assert data.dtstamp == "2020-06-01T00:00:00Z"


async def test_dtstamp_key_also_accepted(data_dir):
    (data_dir / "info.txt").write_text("dtstamp=2021-01-01T00:00:00Z\n", encoding="utf-8")
    data = await FileDefinitionLoader(data_dir).reload_data()
    assert data.dtstamp == "2021-01-01T00:00:00Z"


async def test_dtstamp_falls_back_to_newest_mtime(data_dir):
    (data_dir / "info.txt").unlink()
    stamp = 1_600_000_000  # 2020-09-13T12:26:40Z
    for path in (data_dir / "zoneinfo").rglob("*.ics"):
        os.utime(path, (stamp, stamp))
    data = await FileDefinitionLoader(data_dir).reload_data()
    assert data.dtstamp == "2020-09-13T12:26:40Z"


async def test_missing_aliases_file_is_empty_source(data_dir):
    (data_dir / "aliases.txt").unlink()
    data = await FileDefinitionLoader(data_dir).reload_data()
    assert data.aliases_text == ""


async def test_missing_zoneinfo_directory_is_load_failure(tmp_path):
    with pytest.raises(LoadFailure) as exc:
        await FileDefinitionLoader(tmp_path).reload_data()
    assert exc.value.source == "file"
    assert exc.value.http_status == 503


async def test_undecodable_file_is_load_failure(data_dir):
    (data_dir / "zoneinfo" / "Bad.ics").write_bytes(b"\xff\xfe\x00garbage")
    with pytest.raises(LoadFailure):
        await FileDefinitionLoader(data_dir).reload_data()


async def test_update_reads_the_same_directory(data_dir):
    loader = FileDefinitionLoader(data_dir)
    assert await loader.update_data() == await loader.reload_data()
    await loader.close()
