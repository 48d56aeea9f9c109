"""Async CRUD repository for the ``kv_store`` table.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Writes flush but never commit.
"""

from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from bayb_db.models.kv import KVEntry


class KVRepository:
    """Async get/set operations on the key-value table."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get(self, db: AsyncSession, key: str) -> Any | None:
        """Return the value stored under ``key``, or None if absent."""
        entry = await db.get(KVEntry, key)
        return entry.value if entry is not None else None

    async def mget(self, db: AsyncSession, keys: Iterable[str]) -> dict[str, Any]:
        """Fetch several keys at once; absent keys are left out."""
        keys = list(keys)
        if not keys:
            return {}
        stmt = select(KVEntry).where(KVEntry.key.in_(keys))
        result = await db.execute(stmt)
        return {entry.key: entry.value for entry in result.scalars().all()}

    async def get_by_prefix(self, db: AsyncSession, prefix: str) -> dict[str, Any]:
        """Return every entry whose key starts with ``prefix``, ordered by key."""
        stmt = (
            select(KVEntry)
            .where(KVEntry.key.startswith(prefix, autoescape=True))
            .order_by(KVEntry.key)
        )
        result = await db.execute(stmt)
        return {entry.key: entry.value for entry in result.scalars().all()}

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def set(self, db: AsyncSession, key: str, value: Any) -> KVEntry:
        """Insert or overwrite ``key``.

        The caller must ``await db.commit()`` to persist.
        """
        entry = await db.get(KVEntry, key)
        if entry is None:
            entry = KVEntry(key=key, value=value)
            db.add(entry)
        else:
            entry.value = value
            entry.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return entry

    async def delete(self, db: AsyncSession, key: str) -> bool:
        """Remove ``key``.  Returns True if a row was deleted."""
        result = await db.execute(delete(KVEntry).where(KVEntry.key == key))
        await db.flush()
        return result.rowcount > 0
