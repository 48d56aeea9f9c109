"""Async engine, session factory and the write transaction helper.

An interview writes a handful of small rows per answer, one write at a
time, with long idle gaps while the user speaks.  The pool is therefore
small and connections are pinged before reuse.  ``dispose_engine()``
closes it on shutdown.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from bayb_db.config import get_async_url

logger = logging.getLogger(__name__)

# Overridable via PG_POOL_SIZE / PG_MAX_OVERFLOW
_POOL_SIZE = int(os.getenv("PG_POOL_SIZE", "2"))
_MAX_OVERFLOW = int(os.getenv("PG_MAX_OVERFLOW", "2"))

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the process-wide async engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            get_async_url(),
            pool_size=_POOL_SIZE,
            max_overflow=_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
        logger.debug("Created async engine (pool_size=%d)", _POOL_SIZE)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to :func:`get_engine`."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _session_factory


@asynccontextmanager
async def transaction(factory: SessionFactory | None = None) -> AsyncIterator[AsyncSession]:
    """Open a session that commits on exit and rolls back if the block raises.

    ``factory`` is any zero-argument callable returning an async session
    context manager; the shared factory is used when it is None.
    """
    async with (factory or get_session_factory())() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise
        await db.commit()


async def dispose_engine() -> None:
    """Close the pool; the next :func:`get_engine` call starts a new one."""
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
