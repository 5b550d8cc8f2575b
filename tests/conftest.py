import mongomock
import pytest
from fastapi.testclient import TestClient

from model_catalog.main import create_app


@pytest.fixture
def database():
    """Fresh in-memory Mongo database per test."""
    return mongomock.MongoClient()["model-db"]


@pytest.fixture
def client(database):
    """Client for an app with the default purchase behaviour."""
    return TestClient(create_app(database=database))


@pytest.fixture
def strict_client(database):
    """Client for an app that refuses purchases of unknown models."""
    return TestClient(create_app(database=database, allow_orphan_purchases=False))


@pytest.fixture
def make_model(client):
    def _make(**fields):
        response = client.post("/models", json=fields or {"name": "Widget"})
        assert response.status_code == 201
        return response.json()

    return _make
