"""Shared test fixtures for the Lockbox backend test suite.

Tests run against a throwaway SQLite database created in a temporary
directory. Tables are created once per session and emptied before each test.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="lockbox-tests-")

# Test database and settings before any lockbox imports.
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite:///{os.path.join(_TMP_DIR, 'lockbox_test.db')}",
)
os.environ["AUTH_ENABLED"] = "true"
os.environ["LOG_FORMAT"] = "text"
os.environ["CONFIG_DIR"] = _TMP_DIR
os.environ["FULL_BASE_URL"] = "https://vault.example.com"

import pytest
from fastapi.testclient import TestClient

from lockbox.core import events
from lockbox.database import Base, SessionLocal, engine, get_db
from lockbox.main import app
from lockbox.middleware.request_context import rate_limiter
from lockbox.models.user import ROLE_ADMIN
from lockbox.services.cleanup_service import reset_cleanups

from tests.helpers import make_user

Base.metadata.create_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table before each test.

    Runs before the test (not after) so failures leave data available for
    debugging.
    """
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    rate_limiter.reset()
    reset_cleanups()
    events._listeners.clear()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def admin(db):
    return make_user(db, "admin@example.com", role=ROLE_ADMIN)


@pytest.fixture()
def ada(db):
    return make_user(db, "ada@example.com")


@pytest.fixture()
def betty(db):
    return make_user(db, "betty@example.com")
