"""
Shared fixtures for the shift board tests.

- db_session: a session on a fresh in-memory SQLite schema per test
- client_factory: builds TestClients wired to that same session, one per
  signed-in identity (each client keeps its own session cookie)
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("IDENTITY_CALLBACK_TOKEN", "test-callback-token")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from shiftboard.db import get_db  # noqa: E402
from shiftboard.main import app  # noqa: E402
from shiftboard.models import Base  # noqa: E402

CALLBACK_TOKEN = os.environ["IDENTITY_CALLBACK_TOKEN"]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def client_factory(db_session):
    """Return a function that signs an identity in and hands back its client."""

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    clients = []

    def _make(identity: dict | None = None) -> TestClient:
        client = TestClient(app)
        clients.append(client)
        if identity is not None:
            response = client.post(
                "/api/auth/callback",
                json=identity,
                headers={"X-Identity-Token": CALLBACK_TOKEN},
            )
            assert response.status_code == 200, response.text
        return client

    yield _make

    for client in clients:
        client.close()
    app.dependency_overrides.pop(get_db, None)
