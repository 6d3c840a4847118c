"""Shared test fixtures for the storefront API test suite."""

from unittest.mock import MagicMock

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def mock_db():
    """A MagicMock database handing out one MagicMock per collection name."""
    collections = {}

    def get_collection(name):
        if name not in collections:
            collections[name] = MagicMock(name=f"collection:{name}")
        return collections[name]

    db = MagicMock(name="db")
    db.__getitem__.side_effect = get_collection
    db.name = "storefront_test"
    return db


@pytest.fixture
def graphics_category():
    return {"_id": ObjectId(), "name": "Graphics Cards", "slug": "Graphics-Cards", "is_active": True}


@pytest.fixture
def admin_headers():
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest.fixture
def client(mock_db, monkeypatch):
    """FastAPI test client with the database dependency replaced by ``mock_db``."""
    import config
    import rate_limit
    from database import get_db
    from main import app

    monkeypatch.setattr(config, "ADMIN_TOKEN", ADMIN_TOKEN)
    rate_limit.admin_limiter.reset()
    app.dependency_overrides[get_db] = lambda: mock_db

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def seeded_db():
    """An in-memory mongomock database holding the demo catalog."""
    from seed import seed_catalog

    db = mongomock.MongoClient()["storefront_test"]
    seed_catalog(db)
    return db


@pytest.fixture
def engine_client(seeded_db, monkeypatch):
    """FastAPI test client backed by ``seeded_db``."""
    import config
    import rate_limit
    from database import get_db
    from main import app

    monkeypatch.setattr(config, "ADMIN_TOKEN", ADMIN_TOKEN)
    rate_limit.admin_limiter.reset()
    app.dependency_overrides[get_db] = lambda: seeded_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
