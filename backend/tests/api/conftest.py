"""API test fixtures — FastAPI app wired to a FakeLoader-backed DataStore.

Invariants:
    - get_store overridden per test; overrides cleared afterwards
    - ASGITransport skips the lifespan: no real data directory is touched

Design Decisions:
    - Real parser/transcoder behind the fake loader: responses carry genuine
      iCalendar and jCal payloads
"""

import pytest
from httpx import ASGITransport, AsyncClient

from tzserver.api.dependencies import get_store
from tzserver.main import app


@pytest.fixture
async def client(store):
    app.dependency_overrides[get_store] = lambda: store
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
