import os

# keep module-level settings off the filesystem
os.environ.setdefault("STATE_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient

from jobhub.hub import Hub
from jobhub.main import create_app
from jobhub.storage.provider import MemoryStateStorage


ADMIN_EMAIL = "somchai.admin@company.com"
PASSWORD = "password123"


@pytest.fixture
def storage():
    return MemoryStateStorage()


@pytest.fixture
def hub(storage):
    return Hub(storage, tz_name="Asia/Bangkok", audit_secret="test-secret").hydrate()


@pytest.fixture
def admin_hub(hub):
    hub.users.login(ADMIN_EMAIL, PASSWORD).unwrap()
    return hub


@pytest.fixture
def client(hub):
    return TestClient(create_app(hub))


@pytest.fixture
def admin_client(client):
    resp = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": PASSWORD})
    assert resp.status_code == 200
    return client
