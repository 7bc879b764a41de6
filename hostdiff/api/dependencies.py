"""FastAPI dependency providers."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hostdiff.core.config import Settings, get_settings
from hostdiff.core.database import get_session_factory
from hostdiff.store.snapshots import SnapshotStore


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for the duration of a request."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_store(db: Annotated[AsyncSession, Depends(get_db)]) -> SnapshotStore:
    """Snapshot store bound to the request's session."""
    return SnapshotStore(db)


def get_app_settings() -> Settings:
    return get_settings()
