"""
Dev convenience: create tables if they don't exist.
Call this at startup in local/dev (and in tests) only.
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from . import models  # noqa: F401  (registers the tables on Base.metadata)
from .db import Base


async def create_all(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
