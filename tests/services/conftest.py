"""Service test fixtures — store, broadcaster, facade, and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory gateway and broadcaster
    - The store clock ticks one second per call: ordering is deterministic
    - The API client overrides get_combination_service; lifespan never runs

Design Decisions:
    - httpx ASGITransport: exercises routing, validation, and error handlers
      without a server or a data file
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from craftsync.api.dependencies import get_combination_service
from craftsync.main import app
from craftsync.services.change_broadcaster import ChangeBroadcaster
from craftsync.services.combination_service import CombinationService
from craftsync.services.combination_store import CombinationStore

from tests.services.fakes import InMemoryCombinationRepository

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TickingClock:
    """Returns EPOCH, EPOCH+1s, EPOCH+2s, ..."""

    def __init__(self, start: datetime = EPOCH):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture
def repository():
    return InMemoryCombinationRepository()


@pytest.fixture
def broadcaster():
    return ChangeBroadcaster(queue_size=10)


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store(repository, broadcaster, clock):
    return CombinationStore(
        repository, broadcaster, save_timeout_seconds=0.5, clock=clock,
    )


@pytest.fixture
def service(store, broadcaster):
    return CombinationService(store, broadcaster)


@pytest.fixture
async def client(service):
    """FastAPI test client bound to the fixture service."""
    app.dependency_overrides[get_combination_service] = lambda: service
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()
