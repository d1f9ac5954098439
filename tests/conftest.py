import os

# Must be set before shotdeck.db builds its engine.
os.environ["SHOTDECK_DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from shotdeck.db import Base, SessionLocal, engine
from shotdeck.main import app
from shotdeck.services.storage import get_storage


class FakeStorage:
    """Records signing calls instead of talking to S3."""

    def __init__(self):
        self.put_calls: list[tuple[str, str]] = []
        self.get_calls: list[str] = []

    def presign_put(self, key: str, content_type: str) -> str:
        self.put_calls.append((key, content_type))
        return f"https://signed.test/put/{key}"

    def presign_get(self, key: str) -> str:
        self.get_calls.append(key)
        return f"https://signed.test/get/{key}"

    def public_url(self, key: str | None) -> str | None:
        return f"https://cdn.test/{key}" if key else None


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def heat(client):
    response = client.post(
        "/movies",
        json={"title": "Heat", "director": "Michael Mann", "year": 1995, "runtime_minutes": 170},
    )
    assert response.status_code == 201
    return response.json()
