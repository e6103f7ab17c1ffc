"""Service test fixtures — SQLite document store, service graph, HTTP + WebSocket clients.

Invariants:
    - Every test gets a fresh SQLite file database under tmp_path
    - app.state is rewired per test through attach_components (same path as the lifespan)
    - FakeClock advances one second per call: timestamps are deterministic and increasing

Design Decisions:
    - SQLite file over :memory:: concurrent sessions each get their own connection,
      which is what the store's per-id locking is about
    - ws_client runs the real lifespan via TestClient so HTTP calls and the WebSocket
      share one event loop
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from app.config import Settings, get_settings
from app.infrastructure.database import DatabaseSessionManager
from app.main import app, attach_components
from app.services.connection_registry import ConnectionRegistry
from app.services.event_bus import EventBus
from app.services.listing_service import ListingService
from app.services.listing_store import ListingStore


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
async def db(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await manager.create_schema()
    yield manager
    await manager.dispose()


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def bus(registry):
    return EventBus(registry, queue_size=16)


@pytest.fixture
def store(db):
    return ListingStore(db)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(store, bus, clock):
    return ListingService(store, bus, clock=clock)


@pytest.fixture
async def client(db):
    """FastAPI test client over a fresh store."""
    attach_components(app, db, Settings())
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
def ws_client(tmp_path, monkeypatch):
    """Sync TestClient with the real lifespan (needed for WebSocket sessions)."""
    monkeypatch.setenv(
        "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'ws.db'}",
    )
    get_settings.cache_clear()
    with TestClient(app) as c:
        yield c
    get_settings.cache_clear()
