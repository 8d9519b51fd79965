"""
Pytest fixtures for the budget API test suite.

The app is pointed at an in-memory SQLite database before any project module
is imported; tables are recreated for every test.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app


@pytest.fixture(autouse=True)
def reset_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def signup(client, email="student@example.com", role="STUDENT", **extra):
    payload = {
        "email": email,
        "password": "secret123",
        "firstName": "Test",
        "lastName": "User",
        "role": role,
    }
    payload.update(extra)
    return client.post("/auth/signup", json=payload)


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers(client):
    response = signup(client)
    assert response.status_code == 201, response.text
    return bearer(response.json()["data"]["token"])


@pytest.fixture
def admin_headers(client):
    response = signup(client, email="admin@example.com", role="ADMIN")
    assert response.status_code == 201, response.text
    return bearer(response.json()["data"]["token"])
