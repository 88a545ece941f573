"""Pytest configuration and fixtures."""

import os
import tempfile

# Settings are cached on first use, so the environment is prepared before
# anything from tasklinks is imported.
_DATA_DIR = tempfile.mkdtemp(prefix="tasklinks-test-")
os.environ["TASKLINKS_DATA_DIR"] = _DATA_DIR
os.environ["TASKLINKS_DATABASE_URL"] = f"sqlite+aiosqlite:///{_DATA_DIR}/unused.db"
os.environ["TASKLINKS_RATE_LIMIT_ENABLED"] = "false"
os.environ["TASKLINKS_SERVICE_ROLE_KEY"] = "test-service-key"
os.environ["TASKLINKS_JWT_SECRET"] = "test-secret"

import pytest
from httpx import AsyncClient, ASGITransport

from tasklinks.config import get_settings
from tasklinks.database import build_engine, build_session_maker, get_db
from tasklinks.main import create_app
from tasklinks.models import Base

get_settings.cache_clear()

SERVICE_KEY = "test-service-key"
PASSWORD = "secret123"


@pytest.fixture
async def test_engine(tmp_path):
    """Create a file-backed SQLite engine with foreign keys enabled."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    """Session factory bound to the test engine."""
    return build_session_maker(test_engine)


@pytest.fixture
async def test_session(session_maker):
    """Create a test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def app(session_maker):
    """Application with its database dependency pointed at the test engine."""

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
async def client(app):
    """Create a test client with overridden database."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def signup(client):
    """Register an identity over the API; returns (user_id, auth headers)."""

    async def _signup(email: str, full_name: str = "", password: str = PASSWORD):
        response = await client.post(
            "/api/auth/signup",
            json={"email": email, "password": password, "full_name": full_name},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        headers = {"Authorization": f"Bearer {data['access_token']}"}
        return data["identity"]["id"], headers

    return _signup
