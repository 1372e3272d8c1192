"""
Shared pytest configuration.

Runs against an in-memory SQLite database; the schema is rebuilt before
every test so each test starts from empty tables.
"""

import os

# Must be set before anything imports lineup.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["GOOGLE_CLIENT_ID"] = "test-google-client"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-google-secret"
os.environ["APPLE_CLIENT_ID"] = "test.apple.service"
os.environ["APPLE_CLIENT_SECRET"] = "test-apple-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from lineup import auth  # noqa: E402
from lineup.main import app  # noqa: E402
from lineup.db import Base, SessionLocal, engine  # noqa: E402
from lineup.schemas import SessionUser  # noqa: E402
from lineup.store import RosterStore  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    """Start every test with empty tables."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return RosterStore(db)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user():
    def _make_user(email="pat@example.com", full_name="Pat Player", provider="google"):
        return SessionUser(id=f"{provider}|{email}", email=email, full_name=full_name, provider=provider)
    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {auth.create_session_token(user)}"}
    return _auth_headers


@pytest.fixture
def admin_user(store, make_user):
    """A signed-in user who is already a coach."""
    store.insert("coaches", {"name": "Ada Admin", "email": "ada@example.com"})
    return make_user(email="ada@example.com", full_name="Ada Admin")
