"""Pytest fixtures: isolated SQLite database per test, live queries bound to it."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./grubio.db")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from grubio.database import Base, get_db
from grubio.main import app
from grubio.realtime.live_query import live_queries

# Import all models so they register with Base.metadata
from grubio.models.user import User                  # noqa: F401
from grubio.models.auth_session import AuthSession   # noqa: F401
from grubio.models.event import Event                # noqa: F401
from grubio.models.attendee import EventAttendee     # noqa: F401
from grubio.models.post import Post                  # noqa: F401
from grubio.models.notification import Notification  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode so live-query sessions can read while a writer commits
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory bound to the test database; live queries use it too."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    live_queries.bind(TestingSession)
    yield TestingSession
    live_queries.clear()


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# API helpers: return response JSON dicts
# ---------------------------------------------------------------------------
def auth(identity: dict) -> dict:
    """Authorization header for a signed-in identity."""
    return {"Authorization": f"Bearer {identity['token']}"}


def sign_up_user(client: TestClient, name: str = "Alice", email: str = None,
                 password: str = "secret123") -> dict:
    """Helper: POST /api/auth/signup and return the identity."""
    resp = client.post("/api/auth/signup", json={
        "email": email or f"{name.lower()}@example.com",
        "password": password,
        "display_name": name,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_event(client: TestClient, identity: dict, title: str = "Ducks vs Them Tailgate",
                      description: str = "Bring leftovers", date: str = "2026-11-01") -> dict:
    """Helper: POST /api/events and return the event."""
    resp = client.post("/api/events/", json={
        "title": title,
        "description": description,
        "date": date,
    }, headers=auth(identity))
    assert resp.status_code == 201, resp.text
    return resp.json()


def join_test_event(client: TestClient, identity: dict, join_code: str) -> dict:
    resp = client.post("/api/events/join", json={"join_code": join_code}, headers=auth(identity))
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_test_post(client: TestClient, identity: dict, event_id: str, title: str = "Pizza",
                     description: str = "Five slices of pepperoni", location: str = None) -> dict:
    resp = client.post(f"/api/events/{event_id}/posts", json={
        "title": title,
        "description": description,
        "location": location,
    }, headers=auth(identity))
    assert resp.status_code == 201, resp.text
    return resp.json()


def event_with_guest(client: TestClient):
    """Organizer + guest who joined the organizer's event."""
    organizer = sign_up_user(client, name="Organizer")
    guest = sign_up_user(client, name="Guest")
    event = create_test_event(client, organizer)
    join_test_event(client, guest, event["join_code"])
    return organizer, guest, event


# ---------------------------------------------------------------------------
# Service-level helpers: write rows directly (no password hashing)
# ---------------------------------------------------------------------------
def make_user(db, name: str = "Alice", email: str = None) -> User:
    user = User(display_name=name, email=email or f"{name.lower()}@example.com", password_hash="")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
