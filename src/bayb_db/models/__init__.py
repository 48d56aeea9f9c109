"""ORM models for bayb_db."""

from bayb_db.models.base import Base
from bayb_db.models.kv import KVEntry

__all__ = ["Base", "KVEntry"]
