"""
Test configuration and fixtures
Runs entirely against the in-memory move store; no Redis or network needed.
"""

import pytest
import pytest_asyncio
from datetime import datetime, timedelta, timezone
import os

from httpx import AsyncClient, ASGITransport

# Set test environment before the app reads its settings
os.environ["APP_ENV"] = "testing"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-at-least-32-characters"
os.environ["MOVE_STORE_BACKEND"] = "memory"
os.environ["TOKEN_REVOCATION_ENABLED"] = "false"
os.environ["GOOGLE_MAPS_API_KEY"] = "test-maps-key"

from app.models.move import ActivityType, CampusArea, Move
from app.models.user import Viewer
from app.services.feed_hub import FeedHub
from app.services.move_service import MoveService
from app.services.repository import InMemoryMoveRepository
from app.services.saved_moves import InMemorySavedMoveStore

# Import security functions (not the manager directly)
from app.core.security import create_access_token

NOW = datetime(2025, 10, 15, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock(now):
    return lambda: now


# Viewer fixtures
@pytest.fixture
def alice():
    return Viewer(id="uid-alice", name="Alice", email="alice@northwestern.edu")


@pytest.fixture
def bob():
    return Viewer(id="uid-bob", name="Bob", email="bob@northwestern.edu")


@pytest.fixture
def cara():
    return Viewer(id="uid-cara", name="Cara", email="cara@northwestern.edu")


@pytest.fixture
def dan():
    return Viewer(id="uid-dan", name="Dan", email="dan@northwestern.edu")


@pytest.fixture
def make_move(now):
    """Build a Move hosted by Alice, starting in an hour"""
    def _make(**overrides) -> Move:
        data = {
            "id": "move-1",
            "title": "Pickup soccer",
            "description": "Bring water",
            "location": "Lakeside Field, Evanston, IL",
            "location_name": "Lakeside Field",
            "latitude": 42.0425,
            "longitude": -87.672,
            "start_time": now + timedelta(hours=1),
            "end_time": now + timedelta(hours=2),
            "created_at": now - timedelta(hours=1),
            "area": CampusArea.SOUTH,
            "activity_type": ActivityType.SPORTS,
            "host_id": "uid-alice",
            "host_name": "Alice",
            "attendees": ["Alice"],
            "max_participants": 4,
        }
        data.update(overrides)
        return Move(**data)
    return _make


@pytest.fixture
def move_payload(now):
    """A valid create request body"""
    return {
        "title": "Pickup soccer",
        "description": "Bring water",
        "location": "Lakeside Field, Evanston, IL",
        "location_name": "Lakeside Field",
        "latitude": 42.0425,
        "longitude": -87.672,
        "start_time": (now + timedelta(hours=1)).isoformat(),
        "end_time": (now + timedelta(hours=2)).isoformat(),
        "max_participants": 2,
        "area": "South",
        "activity_type": "Sports",
    }


# Store fixtures
@pytest.fixture
def repository():
    return InMemoryMoveRepository()


@pytest.fixture
def saved_store():
    return InMemorySavedMoveStore()


@pytest.fixture
def service(repository, clock):
    return MoveService(repository, clock=clock, compare_and_swap=False)


@pytest_asyncio.fixture
async def feed_hub(repository, clock):
    hub = FeedHub(clock=clock)
    unsubscribe = await repository.subscribe(hub.on_snapshot, hub.on_error)
    yield hub
    unsubscribe()


@pytest_asyncio.fixture
async def client(repository, saved_store, clock, feed_hub):
    """Create test client with dependency overrides"""
    from app.main import app
    from app.core.store import get_clock, get_feed_hub, get_move_repository, get_saved_store

    app.dependency_overrides[get_move_repository] = lambda: repository
    app.dependency_overrides[get_saved_store] = lambda: saved_store
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_feed_hub] = lambda: feed_hub

    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


def auth_headers_for(viewer: Viewer) -> dict:
    token = create_access_token({"sub": viewer.id, "name": viewer.name, "email": viewer.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice_headers(alice):
    return auth_headers_for(alice)


@pytest.fixture
def bob_headers(bob):
    return auth_headers_for(bob)


@pytest.fixture
def cara_headers(cara):
    return auth_headers_for(cara)
