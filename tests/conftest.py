"""
Shared fixtures: in-memory SQLite database, API client and registered parents.
"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from config.database import Base, get_db


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "s3cret-pass"


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, email):
    """Signs a parent up and returns bearer headers for them."""
    response = client.post("/api/auth/signup", json={"email": email, "password": PASSWORD})
    assert response.status_code == 201
    response = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    return register(client, "parent@example.com")


@pytest.fixture
def other_headers(client):
    return register(client, "other.parent@example.com")


@pytest.fixture
def child(client, auth_headers):
    response = client.post(
        "/api/children",
        json={"name": "Emma", "birth_date": "2023-11-02", "gender": "female"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def add_event(client, auth_headers, child):
    """Posts one event (or a list) for the `child` fixture, returns the created events."""
    def _add(payload, headers=None):
        response = client.post(
            f"/api/children/{child['id']}/events",
            json=payload,
            headers=headers or auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["created"]

    return _add
