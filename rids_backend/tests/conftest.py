"""
Test configuration for the RIDS backend tests.

No PostgreSQL, Redis or identity service needed:
  - each test gets a fresh in-memory SQLite database (aiosqlite) with
    foreign keys ON, so cascades and parent checks behave like production
  - get_db is overridden to use it
  - get_auth_context is overridden to return whatever identity the test set
    through the `auth` fixture (staff by default, None = signed out)
  - app.state.redis is None unless a test installs a fake

Run from the project root: pytest rids_backend/tests -v
"""
import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent.parent   # .../package/
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import rids_backend.models  # noqa: F401  (registers every table on Base.metadata)
from rids_backend.auth import AuthContext, Identity, get_auth_context
from rids_backend.database import Base, get_db
from rids_backend.main import app
from rids_backend.tests.identities import OTHER_RESERVIST, RESERVIST, STAFF


@dataclass
class AuthState:
    identity: Optional[Identity] = STAFF


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # driver-level autocommit so SQLAlchemy's BEGIN/SAVEPOINT are honoured
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for arranging and inspecting data directly."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# App client
# ---------------------------------------------------------------------------

@pytest.fixture
def auth() -> AuthState:
    return AuthState()


@pytest_asyncio.fixture
async def client(session_factory, auth) -> AsyncGenerator[AsyncClient, None]:
    """Async httpx client using ASGI transport — no live server needed."""

    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _get_auth_context() -> AuthContext:
        return AuthContext(identity=auth.identity)

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_auth_context] = _get_auth_context
    app.state.redis = None
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def rids_form(client) -> dict:
    """A draft RIDS form owned by RESERVIST, created through the API as staff."""
    response = await client.post("/api/staff/rids", json={"reservist_id": RESERVIST.id})
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest_asyncio.fixture
async def other_form(client) -> dict:
    response = await client.post("/api/staff/rids", json={"reservist_id": OTHER_RESERVIST.id})
    assert response.status_code == 201, response.text
    return response.json()["data"]
