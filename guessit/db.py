"""
Single place to:
- Read DATABASE_URL from env
- Create an async SQLAlchemy Engine (aiosqlite by default)
- Create a Session factory for the repository
- Hold the ORM Base class

Why: centralizing this keeps connection logic consistent and testable.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

# 1) Load env vars from .env if present
# dev convenience; in prod the platform injects env vars
load_dotenv()

# 2) Pull the connection string. Any async driver works (sqlite+aiosqlite, postgresql+asyncpg, ...)
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./guessit.sqlite3"
DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


# 3) Engine + session factory.
#    pool_pre_ping=True = auto-detect dead connections (helps with long-lived processes).
#    echo=False = set True to print SQL during local debugging.
def make_engine(url: Optional[str] = None, **kwargs) -> AsyncEngine:
    url = url or DATABASE_URL
    kwargs.setdefault("echo", False)
    if not url.startswith("sqlite"):
        kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(url, **kwargs)


#    expire_on_commit=False lets DTO builders read attributes after commit
#    without another round-trip.
def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, class_=AsyncSession)


# 4) Base class for ORM models.
class Base(DeclarativeBase):
    pass
