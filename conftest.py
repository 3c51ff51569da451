"""
Root conftest.py for pytest configuration and shared fixtures.
"""
import os
import time
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment BEFORE importing any app code
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SESSION_STORE_BACKEND"] = "memory"
os.environ["FRONTEND_URL"] = "http://localhost:5173"
os.environ["GITHUB_CLIENT_ID"] = "test-client-id"
os.environ["GITHUB_CLIENT_SECRET"] = "test-client-secret"
os.environ["GITHUB_WEBHOOK_SECRET"] = "test-webhook-secret"

# 32+ chars required
os.environ["JWT_SECRET_KEY"] = "test_secret_key_for_testing_purposes_only_do_not_use_in_production"
os.environ["ENCRYPTION_KEY"] = "test_encryption_key_0123456789abcdef"

TEST_JWT_SECRET = os.environ["JWT_SECRET_KEY"]
TEST_ENCRYPTION_KEY = os.environ["ENCRYPTION_KEY"]
TEST_WEBHOOK_SECRET = os.environ["GITHUB_WEBHOOK_SECRET"]


class FakeGitHubClient:
    """Stands in for GitHubClient; records every call it receives."""

    client_id = "test-client-id"

    def __init__(self, token="gho_testaccesstoken123", user=None):
        from services.api.app.services.github_client import GitHubUser

        self.token = token
        self.user = user or GitHubUser(
            id=583231, login="octocat", avatar_url="https://avatars.example/octocat"
        )
        self.error: Exception | None = None
        self.exchange_calls: list[tuple[str, str | None]] = []
        self.user_calls: list[str] = []

    def exchange_code(self, code, redirect_uri=None):
        self.exchange_calls.append((code, redirect_uri))
        if self.error is not None:
            raise self.error
        return self.token

    def get_authenticated_user(self, access_token):
        self.user_calls.append(access_token)
        return self.user


@pytest.fixture(scope="function")
def test_db_engine():
    """
    In-memory SQLite engine, created fresh for every test.
    """
    from services.api.app.db import Base
    # Import all models so they're registered with Base.metadata
    from services.api.app.models.users import User  # noqa: F401
    from services.api.app.models.projects import Project  # noqa: F401
    from services.api.app.models.issues import Issue  # noqa: F401
    from services.api.app.models.notes import Note  # noqa: F401
    from services.api.app.models.session_records import SessionRecord  # noqa: F401

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Required for SQLite in-memory
        echo=False,
    )
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_db_engine) -> Generator[Session, None, None]:
    """
    Database session shared by the test body and the app under test.

    Commits made by request handlers expire this session's objects, so
    assertions always read fresh rows.
    """
    SessionLocal = sessionmaker(bind=test_db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def session_store():
    from services.api.app.services.session_store import InMemorySessionStore

    return InMemorySessionStore()


@pytest.fixture
def fake_github():
    return FakeGitHubClient()


@pytest.fixture(scope="function")
def client(
    test_db_engine, db_session: Session, session_store, fake_github
) -> Generator[TestClient, None, None]:
    """
    FastAPI test client with database, session store and GitHub overrides.
    """
    # Must import here to ensure test environment is set
    import services.api.app.db as db_module
    from services.api.app.api.deps import (
        get_db_session,
        get_github_client,
        get_session_store,
    )
    from services.api.app.main import app

    original_engine = db_module._engine
    original_sessionmaker = db_module._SessionLocal
    db_module._engine = test_db_engine
    db_module._SessionLocal = sessionmaker(bind=test_db_engine, expire_on_commit=False)

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close, managed by db_session fixture

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_github_client] = lambda: fake_github

    # Cookies are issued with Secure, so talk to the app over https
    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()
    db_module._engine = original_engine
    db_module._SessionLocal = original_sessionmaker


@pytest.fixture
def make_user(db_session):
    """Factory inserting a user row."""
    from services.api.app.models.users import User

    counter = {"n": 0}

    def _make(login: str = "octocat", github_id: int | None = None) -> User:
        counter["n"] += 1
        user = User(
            github_id=github_id if github_id is not None else 1000 + counter["n"],
            login=login,
            avatar_url=f"https://avatars.example/{login}",
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_project(db_session):
    """Factory inserting a project row linked to a repository id."""
    from services.api.app.models.projects import Project

    def _make(user, github_repo_id: int = 42, name: str = "demo-repo") -> Project:
        project = Project(user_id=user.id, github_repo_id=github_repo_id, name=name)
        db_session.add(project)
        db_session.commit()
        return project

    return _make


@pytest.fixture
def auth_token():
    """Factory minting a valid session token for a user."""
    from services.api.app.core.auth import issue_token

    def _make(user, expires_in: str = "1h") -> str:
        return issue_token(
            {"sub": user.id, "login": user.login}, TEST_JWT_SECRET, expires_in=expires_in
        )

    return _make


@pytest.fixture
def login_as(client, auth_token):
    """Set the session cookie on the test client for the given user."""

    def _login(user) -> str:
        token = auth_token(user)
        client.cookies.set("token", token)
        return token

    return _login


@pytest.fixture
def frozen_clock():
    """Mutable clock for code that accepts an injectable ``clock`` callable."""

    class _Clock:
        def __init__(self) -> None:
            self.now = time.time()

        def __call__(self) -> float:
            return self.now

        def advance(self, seconds: float) -> None:
            self.now += seconds

    return _Clock()


@pytest.fixture(autouse=True)
def reset_environment():
    """Reset environment variables after each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
