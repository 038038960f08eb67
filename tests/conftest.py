from __future__ import annotations

import os

# Settings are read at import time by crudcore.api.main; set them before any test module imports it.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
# The shipped READ COMMITTED default must work on SQLite as well.
os.environ.pop("TRANSACTION_ISOLATION_LEVEL", None)
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "false"
os.environ["ENSURE_CREATED_ON_STARTUP"] = "false"
os.environ["AUTO_SEED"] = "false"
os.environ["MESSAGES_LOCALE"] = "pt-BR"

import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from crudcore.db.session import create_session_maker, ensure_created  # noqa: E402


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with the full schema; one shared connection per test."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await ensure_created(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session
