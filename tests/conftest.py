import pytest
from fastapi.testclient import TestClient

from string_analyzer.crud.store import InMemoryRecordStore, get_store
from string_analyzer.main import app


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def seed(client):
    def _seed(*values):
        for value in values:
            resp = client.post("/strings", json={"value": value})
            assert resp.status_code == 201, resp.text
    return _seed
