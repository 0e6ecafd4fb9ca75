import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import Store
from main import create_app


@pytest.fixture
def store():
    """Store backed by an in-memory mongomock database."""
    db = mongomock.MongoClient()["househunt_test"]
    store = Store(db, retries=3, retry_delay=0)
    store.ensure_indexes()
    return store


@pytest.fixture
def client(store):
    app = create_app(store=store, settings=Settings(log_level="WARNING"))
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register_user(client):
    def _register(name, email, role="renter", password="secret123"):
        res = client.post(
            "/api/users/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )
        assert res.status_code == 201, res.text
        return res.json()
    return _register


@pytest.fixture
def alice(register_user):
    return register_user("Alice", "alice@example.com", role="renter")


@pytest.fixture
def bob(register_user):
    return register_user("Bob", "bob@example.com", role="owner")


@pytest.fixture
def loft(client, bob):
    res = client.post(
        "/api/properties/add",
        json={"ownerId": bob["_id"], "title": "Loft", "rent": 1200, "location": "Downtown", "bedrooms": 2},
    )
    assert res.status_code == 201, res.text
    return res.json()
