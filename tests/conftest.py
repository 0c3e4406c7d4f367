"""Pytest configuration and fixtures."""

import os
from dataclasses import replace
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from eventhub.api.dependencies import get_deletion_scheduler, get_media_host
from eventhub.database import Base, get_db
from eventhub.domain import EventRecord, MediaUpload, StoredMedia
from eventhub.identifiers import EventId, UserId
from eventhub.main import app
from eventhub.schemas.event import EventFilter
from eventhub.services.auth import create_access_token
from eventhub.services.events import EventAccessController
from eventhub.services.media import MediaError, MediaHost
from eventhub.stores.interfaces import EventStore


class AuthHeaders(dict):
    """Dict subclass that also stores user_id, email and the raw token."""

    def __init__(
        self,
        *args,
        user_id: int | None = None,
        email: str | None = None,
        token: str | None = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email
        self.token = token


class InMemoryEventStore(EventStore):
    """Dict-backed event store for controller tests."""

    def __init__(self):
        self.events: dict[EventId, EventRecord] = {}
        self._ids = count(1)

    def list_events(self, filters: EventFilter | None = None) -> list[EventRecord]:
        records = list(self.events.values())
        if filters is None:
            return records
        return [record for record in records if self._matches(record, filters)]

    @staticmethod
    def _matches(record: EventRecord, filters: EventFilter) -> bool:
        if filters.query:
            text = f"{record.title}\n{record.description}".lower()
            if filters.query.lower() not in text:
                return False
        if filters.category and record.category.lower() != filters.category.lower():
            return False
        if filters.location and filters.location.lower() not in record.location.lower():
            return False
        if filters.date and record.date < filters.date:
            return False
        if filters.is_free is True and (not record.is_free or record.price is not None):
            return False
        if filters.is_free is False and record.is_free:
            return False
        price = record.price or 0
        if filters.min_price is not None and price < filters.min_price:
            return False
        if filters.max_price is not None and price > filters.max_price:
            return False
        return True

    def list_events_by_owner(self, owner: UserId) -> list[EventRecord]:
        return [record for record in self.events.values() if record.owner == owner]

    def get_event(self, event_id: EventId) -> EventRecord | None:
        return self.events.get(event_id)

    def add_event(self, owner: UserId, fields: dict) -> EventRecord:
        record = EventRecord(id=EventId(next(self._ids)), owner=owner, **fields)
        self.events[record.id] = record
        return record

    def update_event(self, event_id: EventId, fields: dict) -> EventRecord | None:
        record = self.events.get(event_id)
        if record is None:
            return None
        updated = replace(record, **fields)
        self.events[event_id] = updated
        return updated

    def delete_event(self, event_id: EventId) -> bool:
        return self.events.pop(event_id, None) is not None


class RecordingMediaHost(MediaHost):
    """Media host that keeps images in memory and remembers deletions."""

    url_prefix = "memory://"

    def __init__(self, fail_deletes: bool = False):
        self.files: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_deletes = fail_deletes
        self._ids = count(1)

    def key_for(self, url: str) -> str:
        return url.removeprefix(self.url_prefix)

    def store(self, upload: MediaUpload) -> StoredMedia:
        key = f"{next(self._ids)}_{upload.filename}"
        self.files[key] = upload.data
        return StoredMedia(url=f"{self.url_prefix}{key}", key=key)

    def delete(self, key: str) -> None:
        if self.fail_deletes:
            raise MediaError("media host unavailable")
        self.files.pop(key, None)
        self.deleted.append(key)


def make_token(user_id: int, email: str = "user@example.com", **kwargs) -> str:
    """Issue a credential for a user id."""
    return create_access_token(user_id, email, **kwargs)


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/eventhub", "/eventhub_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def media_host():
    """In-memory media host shared by the app and the test."""
    return RecordingMediaHost()


@pytest.fixture
def client(db, media_host):
    """Create a test client with database and media overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_host] = lambda: media_host
    # Delete inline instead of queueing on Celery
    app.dependency_overrides[get_deletion_scheduler] = lambda: media_host.delete
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email: str, name: str, password: str = "testpass123") -> AuthHeaders:
    response = client.post(
        "/auth/signup",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201
    data = response.json()
    token = data["access_token"]
    return AuthHeaders(
        {"Authorization": f"Bearer {token}"},
        user_id=data["user"]["id"],
        email=data["user"]["email"],
        token=token,
    )


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    return register(client, "test@example.com", "Test User")


@pytest.fixture
def other_auth_headers(client):
    """Create a second user who owns nothing yet."""
    return register(client, "other@example.com", "Other User")


@pytest.fixture
def event_payload():
    """A valid free event."""
    return {
        "title": "Jazz Night",
        "description": "Live quartet",
        "date": "2025-06-01",
        "time": "20:00",
        "location": "Hall A",
        "organizer": "Alice",
        "category": "Music",
        "isFree": True,
    }


@pytest.fixture
def memory_store():
    return InMemoryEventStore()


@pytest.fixture
def controller(memory_store, media_host):
    """Access controller wired to in-memory fakes."""
    return EventAccessController(memory_store, media_host)


@pytest.fixture
def token_for():
    """Factory issuing credentials for arbitrary user ids."""
    return make_token
