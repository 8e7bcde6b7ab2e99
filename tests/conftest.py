"""
Pytest configuration and fixtures.

HTTP tests run against the real FastAPI app with the session dependency replaced by an
in-memory stand-in; repository methods are monkeypatched per test, so no database is needed.
"""
import os
from datetime import datetime, timedelta, timezone

import pytest

os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ.pop("JWT_AUDIENCE", None)

from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from factory_ops.api.main import app  # noqa: E402
from factory_ops.db.session import get_async_session  # noqa: E402

USER_ID = "6f1c2a9e-3b7d-4c1a-9f0e-2d4b5a6c7e8f"


class FakeSession:
    """Records what services add and commit; any query is a test bug."""

    def __init__(self):
        self.added = []
        self.commits = 0

    def add(self, entity):
        self.added.append(entity)

    def add_all(self, entities):
        self.added.extend(entities)

    async def commit(self):
        self.commits += 1

    async def flush(self):
        pass

    async def execute(self, *args, **kwargs):
        raise AssertionError("Unexpected database access; monkeypatch the repository method")


def make_token(*roles, sub=USER_ID, secret="test-secret", **claims):
    payload = {
        "sub": sub,
        "roles": list(roles),
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    async def _session_override():
        yield session

    app.dependency_overrides[get_async_session] = _session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a caller holding the given roles."""

    def _headers(*roles, **claims):
        return {"Authorization": f"Bearer {make_token(*roles, **claims)}"}

    return _headers
