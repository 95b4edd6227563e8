"""Shared fixtures for the shortlink tests."""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shortlink.core.config import Settings
from shortlink.core.database import Database
from shortlink.main import create_app


IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_5 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/16.5 Mobile/15E148 Safari/604.1"
)
DESKTOP_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@pytest.fixture
def settings():
    """Settings for an in-memory database, ignoring any local .env."""
    return Settings(
        _env_file=None,
        database_url=":memory:",
        base_url="http://sho.rt",
        environment="test",
    )


@pytest.fixture
def test_db():
    """Create a connected in-memory database."""
    db = Database(":memory:")
    db.connect()
    yield db
    db.close()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """Test client; entering it runs the lifespan that opens the database."""
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture
def app_db(app, client):
    """The database handle the running app is using."""
    return app.state.db
