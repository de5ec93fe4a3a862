"""Running the async pipeline inside sync Celery workers."""

import asyncio
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from brandpulse.core.config import settings


def _run_async(coro):
    """Run ``coro`` to completion on a fresh event loop.

    asyncpg connections are bound to the loop that opened them, so each task
    gets its own loop and (see below) its own engine.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@asynccontextmanager
async def worker_sessions():
    """Session factory on a task-local engine, disposed when the block exits."""
    engine = create_async_engine(
        settings.postgres_url,
        pool_size=5,
        max_overflow=5,
        pool_pre_ping=True,
    )
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()
