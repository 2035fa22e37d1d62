# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
import os
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

# Set test environment before importing app
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-32chars!"  # nosec - test-only secret  # noqa: S105
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("RESERVED_USERNAME", None)
os.environ.pop("RESERVED_PASSWORD", None)

from ems.config import get_settings
from ems.database import build_engine, get_db
from ems.main import app
from ems.models import Role, User
from ems.models.base import Base
from ems.schemas.auth import SessionUser
from ems.security import get_password_hash
from ems.services import credential_store, session_service

ADMIN_PASSWORD = "ems137245"  # nosec - documented bootstrap default  # noqa: S105

# Test database setup
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db_session):
    """Factory for independent sessions on the test database."""
    return TestingSessionLocal


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def make_role(db_session):
    """Create a persisted role."""

    def _make(name: str, permissions=(), author: str | None = "Admin") -> Role:
        outcome = credential_store.insert_role(db_session, name, list(permissions), author)
        assert outcome.created
        return outcome.record

    return _make


@pytest.fixture
def make_user(db_session):
    """Create a persisted user; ``role`` may be a Role or a bare role id."""

    def _make(
        username: str,
        role: Role | uuid.UUID | None = None,
        password: str | None = "secret123",
        author: str | None = "Admin",
    ) -> User:
        role_id = role.id if isinstance(role, Role) else (role or uuid.uuid4())
        outcome = credential_store.insert_user(
            db_session,
            username,
            get_password_hash(password) if password else None,
            role_id,
            author,
        )
        assert outcome.created
        return outcome.record

    return _make


@pytest.fixture
def make_session(settings):
    """Issue a verified session snapshot for a user, as login would."""

    def _make(
        user: User, role: Role | None = None, permissions: list[str] | None = None
    ) -> SessionUser:
        if permissions is None:
            permissions = list(role.permissions) if role is not None else []
        return session_service.issue_session(
            settings,
            user_id=str(user.id),
            username=user.username,
            role_id=str(role.id) if role is not None else str(user.role_id),
            role_name=role.name if role is not None else "Unknown Role",
            permissions=permissions,
        ).user

    return _make


@pytest.fixture
def admin_client(client):
    """Create an authenticated client for the reserved Admin account."""
    response = client.post(
        "/api/v1/auth/login", data={"username": "Admin", "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return client
