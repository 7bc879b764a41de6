"""pytest fixtures shared across all tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hostdiff.models import Base
from hostdiff.schemas.snapshot import SnapshotData
from hostdiff.store.snapshots import SnapshotStore

# In-memory SQLite, so no server is required.
# Each test function gets its own fresh DB to avoid cross-test pollution.
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

HOST_IP = "125.199.235.74"


def make_snapshot(
    services: list[dict[str, Any]] | None = None,
    os_name: str | None = None,
    ip: str = HOST_IP,
    timestamp: datetime | str = "2025-10-16T12:00:00Z",
) -> SnapshotData:
    """Build a validated snapshot from plain dicts."""
    return SnapshotData.model_validate(
        {
            "ip_address": ip,
            "timestamp": timestamp,
            "os_info": {"name": os_name},
            "services": services or [],
        }
    )


def ts(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 10, 16, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def snapshot_factory():
    return make_snapshot


@pytest_asyncio.fixture
async def engine():
    """Create a fresh in-memory SQLite engine per test function."""
    eng = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Yield an async session bound to the test engine."""
    factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=True)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def store(db_session):
    return SnapshotStore(db_session)


@pytest.fixture
def app(engine):
    """FastAPI app whose sessions come from the test engine."""
    from hostdiff.api.app import create_app
    from hostdiff.api.dependencies import get_db

    app = create_app()
    factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=True)

    async def override_db():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_db
    return app


@pytest_asyncio.fixture
async def client(app):
    """HTTPX async test client wired to the FastAPI app with a test DB."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
