import os

# Must be set before workboard is imported: the module-level engine is built from it.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["INIT_MODE"] = "test"

import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from workboard.database.config import connection_engine
from workboard.database.core.change_relay import change_relay


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test, bound as the application engine."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'workboard.db'}")
    previous = connection_engine.connection_engine
    connection_engine.bind_engine(engine)
    await connection_engine.create_tables()
    try:
        yield engine
    finally:
        change_relay.close()
        connection_engine.bind_engine(previous)
        await engine.dispose()
