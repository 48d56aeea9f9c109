"""bayb_db: PostgreSQL persistence for interview answers.

This package provides the key-value ORM model, the async engine factory,
the repository, and ``KVAnswerStore``, the answer store an
``InterviewSession`` writes to.
"""

from bayb_db.engine import dispose_engine, get_engine, get_session_factory, transaction
from bayb_db.models.kv import KVEntry
from bayb_db.repository import KVRepository
from bayb_db.store import KVAnswerStore

__all__ = [
    "KVEntry",
    "KVRepository",
    "KVAnswerStore",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "transaction",
]
