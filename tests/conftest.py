"""
Test configuration for the clinic agenda backend.
"""
import datetime as dt

import pytest
from fastapi.testclient import TestClient

from clinic_agenda.config import Settings
from clinic_agenda.core.backend import build_local_backend, build_remote_backend
from clinic_agenda.core.entity_store import EntityStore
from clinic_agenda.database import create_db_engine, create_session_factory
from clinic_agenda.main import create_app

from fakes import FakeFirestoreClient

# In-memory SQLite, one fresh database per engine
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def engine():
    """
    Create a fresh in-memory database for each test.
    """
    engine = create_db_engine(TEST_DATABASE_URL)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def store(engine):
    return EntityStore(create_session_factory(engine))


@pytest.fixture(scope="function")
def backend(store):
    """Local backend in UTC."""
    return build_local_backend(store, dt.timezone.utc)


@pytest.fixture(scope="function")
def firestore_client():
    return FakeFirestoreClient()


@pytest.fixture(scope="function")
def remote_backend(firestore_client):
    """Remote backend over the in-memory Firestore fake, in UTC."""
    return build_remote_backend(firestore_client, dt.timezone.utc)


@pytest.fixture(scope="function")
def settings():
    return Settings(_env_file=None, storage_backend="local", database_url=TEST_DATABASE_URL)


@pytest.fixture(scope="function")
def client(settings):
    """
    Create a test client running the application lifespan.
    """
    app = create_app(settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture(scope="function")
def admin_client(client):
    """Test client with the admin user logged in."""
    response = client.post("/api/v1/auth/login", json={"username": "admin", "password": "password"})
    assert response.status_code == 200
    return client
