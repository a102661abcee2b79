from __future__ import annotations

import asyncio
import os

import pytest

# No table creation or stray sqlite files from the app's own lifespan during tests.
os.environ.setdefault("CREATE_TABLES", "false")
os.environ.setdefault("ASYNC_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from chatrelay.db.session import create_tables  # noqa: E402


@pytest.fixture
def session_factory(tmp_path):
    """A fresh on-disk SQLite database per test.

    NullPool so no connection outlives the event loop that opened it; every
    test drives its coroutines through its own ``asyncio.run``.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}", poolclass=NullPool)
    asyncio.run(create_tables(engine))
    yield async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    asyncio.run(engine.dispose())
