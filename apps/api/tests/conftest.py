"""
Pytest configuration and fixtures

Tests run against an in-memory SQLite database. Every table is created
before each test and dropped after it, so nothing leaks between tests.
"""
import os
import sys

# Environment must be in place before any app module reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_ACCESS_SECRET"] = "test-secret-key-that-is-at-least-32-characters-long"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SENTRY_DSN"] = ""

# Add the parent directory to the path so we can import from core, services, ...
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient

from core.database import Base, SessionLocal, engine
from main import app

API = "/api/v1"
DEFAULT_PASSWORD = "pw123456"


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register_user(client):
    """Factory: register an account and return the auth payload."""
    def _register(email: str = "a@x.com", password: str = DEFAULT_PASSWORD, name: str = "Ana Souza"):
        response = client.post(
            f"{API}/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _register


@pytest.fixture
def auth_headers(register_user):
    """Bearer headers for a freshly registered user."""
    data = register_user()
    return {"Authorization": f"Bearer {data['accessToken']}"}


@pytest.fixture
def other_headers(register_user):
    """Bearer headers for a second, unrelated user."""
    data = register_user(email="b@x.com", name="Bruno Lima")
    return {"Authorization": f"Bearer {data['accessToken']}"}


@pytest.fixture
def create_workout(client):
    """Factory: create a workout for the given headers and return its JSON."""
    def _create(headers, **overrides):
        body = {
            "dayOfWeek": 1,
            "time": "07:30",
            "name": "Legs",
            "exercises": [{"name": "Squat"}, {"name": "Lunge"}],
        }
        body.update(overrides)
        response = client.post(f"{API}/workouts", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["workout"]
    return _create
