"""Shared fixtures."""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pingpilot.config import settings
from pingpilot.database import Base
from pingpilot.store import SqlTargetStore

import pingpilot.models  # noqa: F401  registers tables


@pytest.fixture(autouse=True)
def _local_time_is_utc(monkeypatch):
    """Pin "server-local" time so schedule tests do not depend on the host."""
    monkeypatch.setattr(settings, "timezone", "UTC")
    monkeypatch.setattr(settings, "monitoring_api_key", None)


@pytest.fixture
async def session_factory(tmp_path):
    """File-backed SQLite so concurrent sessions see the same data."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    await engine.dispose()


@pytest.fixture
async def sql_store(session_factory) -> SqlTargetStore:
    return SqlTargetStore(session_factory)
