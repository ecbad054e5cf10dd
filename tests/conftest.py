"""
Pytest configuration and shared fixtures.

DATABASE_URL is pointed at a throwaway SQLite file before any app import,
and the settings cache is cleared so the override is picked up.
"""

import os
import tempfile
from pathlib import Path

import pytest

_TEST_DB = Path(tempfile.mkdtemp(prefix="socialmedia-tests-")) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB}"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from socialmedia.config import get_settings  # noqa: E402
get_settings.cache_clear()

from fastapi.testclient import TestClient  # noqa: E402

from socialmedia.main import app  # noqa: E402
from socialmedia.storage import Base, SessionLocal, engine, init_db  # noqa: E402


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    init_db()

    with TestClient(app) as test_client:
        yield test_client

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db():
    """Raw session over a fresh database, for manager-level tests."""
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)