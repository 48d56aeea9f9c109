"""KVEntry ORM model: one row per key of the key-value store.

Keys are namespaced strings (``user:{id}:...``); values are arbitrary JSON
documents, so a whole answers snapshot fits in one row.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from bayb_db.models.base import Base


class KVEntry(Base):
    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    # JSON document: a snapshot dict, a single answer, a flag or a timestamp
    value: Mapped[Any] = mapped_column(JSONB, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<KVEntry(key={self.key!r})>"
