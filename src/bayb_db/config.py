"""Database configuration read from environment variables.

Supports two modes:
1. A single ``DATABASE_URL`` env var (takes precedence).
2. Individual ``PG_HOST``, ``PG_PORT``, ``PG_USER``, ``PG_PASSWORD`` and
   ``PG_DATABASE`` env vars.

``get_sync_url()`` serves Alembic; ``get_async_url()`` serves the asyncpg
engine used at runtime.
"""

import os

_SYNC_PREFIX = "postgresql://"
_ASYNC_PREFIX = "postgresql+asyncpg://"


def _build_url_from_parts() -> str:
    host = os.getenv("PG_HOST", "localhost")
    port = os.getenv("PG_PORT", "5432")
    user = os.getenv("PG_USER", "bayb")
    password = os.getenv("PG_PASSWORD", "bayb")
    database = os.getenv("PG_DATABASE", "bayb")
    return f"{_SYNC_PREFIX}{user}:{password}@{host}:{port}/{database}"


def get_sync_url() -> str:
    """Return a synchronous connection URL (Alembic runs migrations synchronously)."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url.replace(_ASYNC_PREFIX, _SYNC_PREFIX)
    return _build_url_from_parts()


def get_async_url() -> str:
    """Return an asyncpg connection URL for the async engine."""
    url = os.getenv("DATABASE_URL") or _build_url_from_parts()
    if url.startswith(_SYNC_PREFIX):
        return url.replace(_SYNC_PREFIX, _ASYNC_PREFIX, 1)
    return url
