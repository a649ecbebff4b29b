"""
RecipeBox Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite database file (aiosqlite) and upload
       directory under tmp_path, an app built by create_app() around them,
       and an HTTPX AsyncClient talking to it over ASGITransport.

Fixture Hierarchy (all function-scoped):
    test_settings ─┬─ database ─── db_session
                   └─ app ──────── client
    register / bearer    API registration helper, Authorization header builder
    mock_db_session      AsyncSession stand-in for failure injection
    sample_image_bytes   tiny JPEG payload
"""

import os
import tempfile
from typing import AsyncGenerator, Awaitable, Callable, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Set BEFORE any recipebox import: recipebox.main builds a module-level app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./recipebox-test.db"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="recipebox_test_uploads_")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from recipebox.config import Settings  # noqa: E402
from recipebox.database import Database  # noqa: E402
from recipebox.main import create_app  # noqa: E402

TEST_SECRET = os.environ["JWT_SECRET"]


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a per-test SQLite file and upload directory."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'recipebox.db'}",
        jwt_secret=TEST_SECRET,
        jwt_expires_minutes=60,
        bcrypt_rounds=4,
        upload_dir=str(tmp_path / "uploads"),
        max_upload_size=64 * 1024,
        public_base_url="http://localhost:4000",
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def database(test_settings) -> AsyncGenerator[Database, None]:
    """An opened Database handle with all tables created."""
    db = Database.from_settings(test_settings)
    await db.connect(create_tables=True)
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """A raw AsyncSession for service-level tests; the test commits as needed."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def app(test_settings, database):
    return create_app(test_settings, database=database)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient routed straight into the app.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ══════════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def jwt_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def register(client) -> Callable[..., Awaitable[str]]:
    """
    Register a user through the API and return the bearer token.

    Usage:
        token = await register("Ann", "a@x.io")
    """

    async def _register(name: str, email: str, password: str = "p") -> str:
        response = await client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 200, response.text
        return response.json()["token"]

    return _register


@pytest.fixture
def bearer() -> Callable[[str], Dict[str, str]]:
    def _bearer(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _bearer


# ══════════════════════════════════════════════════════════════════════════
# Mocks and Sample Data
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
        with pytest.raises(DatabaseError):
            await recipe_service.list_by_owner(mock_db_session, owner_id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )
