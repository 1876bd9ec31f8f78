import os
import tempfile

# Settings are read at import time: configure the environment before
# anything from emotion_recognition is imported.
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URI", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="emotion-logs-"))
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="emotion-uploads-"))

import base64
from contextlib import asynccontextmanager

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from emotion_recognition.core.database import Base, enable_sqlite_foreign_keys, get_db
import emotion_recognition.models  # noqa: F401
from emotion_recognition.main import app
from emotion_recognition.models.sessions import DetectionSession


# Replace the app's lifespan with a no-op version so the tests never touch
# the configured database or reconfigure logging.
@asynccontextmanager
async def _empty_lifespan(_app):
    yield

app.router.lifespan_context = _empty_lifespan


# DATABASE FIXTURES

@pytest.fixture(scope="function")
def db_session():
    """
    Creates a fresh SQLite in-memory database for each test function.
    StaticPool keeps a single connection so every query sees the same data,
    and foreign keys are enforced so cascades behave like PostgreSQL.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine
    )
    session = TestingSessionLocal()
    try:

        yield session

    finally:

        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    """
    FastAPI TestClient with the get_db dependency overridden
    to use the SQLite in-memory session from db_session fixture.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def demo_session(db_session) -> DetectionSession:
    """An open anonymous session named "Demo"."""
    session = DetectionSession(session_name="Demo")
    db_session.add(session)
    db_session.commit()
    db_session.refresh(session)
    return session


# USER FIXTURES

@pytest.fixture
def registered_user_payload() -> dict:
    """Valid registration payload for a test user."""
    return {
        "username" : "testuser",
        "email"    : "testuser@example.com",
        "password" : "SecurePass123",
        "fullName" : "Test User",
    }


@pytest.fixture
def registered_user(client, registered_user_payload) -> dict:
    """
    Registers a user via the API and returns the response JSON.
    """
    response = client.post(
        "/api/v1/auth/register",
        json=registered_user_payload
    )
    assert response.status_code == 201, (
        f"Setup failed: could not register test user. "
        f"Response: {response.json()}"
    )
    return response.json()


@pytest.fixture
def auth_token(client, registered_user_payload, registered_user) -> str:
    """
    Logs in the registered test user and returns the JWT access token.
    """
    response = client.post(
        "/api/v1/auth/login",
        data={
            "username": registered_user_payload["email"],
            "password": registered_user_payload["password"],
        }
    )
    assert response.status_code == 200, (
        f"Setup failed: could not login test user. "
        f"Response: {response.json()}"
    )
    return response.json()["access_token"]


@pytest.fixture
def auth_headers(auth_token) -> dict:
    """Returns Authorization header dict for authenticated requests."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def other_auth_headers(client) -> dict:
    """Headers of a second, unrelated account."""
    response = client.post(
        "/api/v1/auth/register",
        json={
            "username": "otheruser",
            "email"   : "other@example.com",
            "password": "OtherPass123",
        }
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


# IMAGE FIXTURES

@pytest.fixture
def jpeg_bytes_64x48() -> bytes:
    """A valid JPEG of a 64x48 black frame."""
    img = np.zeros((48, 64, 3), dtype=np.uint8)
    ok, buffer = cv2.imencode(".jpg", img)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def base64_jpeg_with_data_uri(jpeg_bytes_64x48) -> str:
    """Same JPEG as a browser canvas export: data URI header plus Base64."""
    return "data:image/jpeg;base64," + base64.b64encode(jpeg_bytes_64x48).decode("utf-8")
