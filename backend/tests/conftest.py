"""Root conftest — shared test configuration and DataStore fixtures."""

import os

import pytest

# Ensure tests never read a developer's data directory or database
os.environ.setdefault("TZSERVER_DATA_DIR", "/nonexistent-tzserver-data")
os.environ.setdefault("TZSERVER_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TZSERVER_LOG_FORMAT", "text")

from tzserver.infrastructure.ical_codec import IcalendarParser, JCalTranscoder  # noqa: E402
from tzserver.services.data_store import DataStore  # noqa: E402
from tests.tz_samples import FakeLoader  # noqa: E402


@pytest.fixture
def parser():
    return IcalendarParser()


@pytest.fixture
def transcoder():
    return JCalTranscoder()


@pytest.fixture
def loader():
    return FakeLoader()


@pytest.fixture
def store(loader, parser, transcoder):
    """DataStore over the FakeLoader; nothing loaded until first access."""
    return DataStore(loader, parser, transcoder, name="test")
