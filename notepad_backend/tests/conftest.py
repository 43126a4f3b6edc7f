import os

# src.db builds its engine at import time; keep tests off any real Postgres.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "dev-secret-for-tests")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.api.main import app
from src.db import Base, get_db


@pytest.fixture()
def session_factory():
    # one in-memory database per test, shared across the TestClient threadpool
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def call(client):
    """POST to a named action as the given user and return the response."""
    def _call(action, payload=None, user="userA", headers=None):
        hdrs = dict(headers or {})
        if user is not None:
            hdrs.setdefault("X-User-Id", user)
        if payload is None:
            return client.post(f"/actions/{action}", headers=hdrs)
        return client.post(f"/actions/{action}", headers=hdrs, json=payload)

    return _call
