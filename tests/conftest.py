"""Pytest configuration and fixtures."""

import os

# Running locally - point the application at SQLite before it is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from recipehub.config import get_settings  # noqa: E402
from recipehub.database import Base, get_db  # noqa: E402
from recipehub.main import app  # noqa: E402


class AuthHeaders(dict):
    """Dict subclass that also stores user_id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


# Use test database - PostgreSQL in Docker, SQLite locally
if "postgresql" in os.environ["DATABASE_URL"]:
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"].replace("/recipehub", "/recipehub_test")
else:
    SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"]

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function", autouse=True)
def settings(tmp_path, monkeypatch):
    """Settings for the test, with uploads written to a temporary directory."""
    test_settings = get_settings()
    monkeypatch.setattr(test_settings, "upload_path", str(tmp_path / "uploads"))
    return test_settings


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register_user(client, email: str, password: str, full_name: str) -> AuthHeaders:
    """Register a user and return auth headers carrying its id and email."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "full_name": full_name},
    )
    assert response.status_code == 201
    data = response.json()
    token = data["session"]["access_token"]
    return AuthHeaders(
        {"Authorization": f"Bearer {token}"}, user_id=data["user"]["id"], email=email
    )


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    return register_user(client, "test@example.com", "testpass123", "Test User")


@pytest.fixture
def second_auth_headers(client):
    """Create a second, unrelated user."""
    return register_user(client, "other@example.com", "otherpass123", "Other User")


@pytest.fixture
def create_recipe(client, auth_headers):
    """Factory creating a recipe through the API and returning its JSON."""

    def _create(headers=None, **fields):
        payload = {
            "title": "Test Recipe",
            "instructions": "Mix and cook.",
            "is_public": True,
        }
        payload.update(fields)
        response = client.post(
            "/api/v1/recipes", headers=headers or auth_headers, json=payload
        )
        assert response.status_code == 201, response.text
        return response.json()["recipe"]

    return _create
