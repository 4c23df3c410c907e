"""
- In-memory round store + orchestrator for fast domain tests
- Temp aiosqlite DB (in-memory, one shared connection) for repository tests
- A TestClient over a temp sqlite file for API tests
Secrets are fixed ("12345") so outcomes are predictable.
"""
import os
from typing import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

# Ensure the app does NOT run dev-only startup hooks against a real DB
os.environ.setdefault("APP_ENV", "test")

from guessit.bootstrap_db import create_all, drop_all
from guessit.db import make_session_factory
from guessit.main import create_app
from guessit.orchestrator import GameOrchestrator
from guessit.repository import DBRoundRepository
from guessit.store import InMemoryRoundStore

FIXED_SECRET = "12345"


def fixed_secret() -> str:
    return FIXED_SECRET


@pytest.fixture
def store() -> InMemoryRoundStore:
    return InMemoryRoundStore(secret_factory=fixed_secret)


@pytest.fixture
def orchestrator(store) -> GameOrchestrator:
    return GameOrchestrator(store)


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    # StaticPool keeps ONE connection, otherwise every connection would see
    # its own empty in-memory database.
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await create_all(engine)
    yield engine
    await drop_all(engine)
    await engine.dispose()


@pytest.fixture
def repo(db_engine) -> DBRoundRepository:
    return DBRoundRepository(make_session_factory(db_engine), secret_factory=fixed_secret)


@pytest.fixture
def client(tmp_path) -> Generator[TestClient, None, None]:
    # Entering the context runs the lifespan (engine, tables, orchestrator)
    app = create_app(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite3'}",
        secret_factory=fixed_secret,
        create_tables=True,
        debug_routes=True,
    )
    with TestClient(app) as test_client:
        yield test_client
