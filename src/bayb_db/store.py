"""KVAnswerStore: interview answers persisted in the key-value table.

Key layout per user::

    user:{id}:onboarding_answers        full answers snapshot (JSON object)
    user:{id}:onboarding:{field}        one answered field
    user:{id}:onboarding_complete       true once the interview finished
    user:{id}:onboarding_completed_at   ISO-8601 completion time

Unlike :class:`KVRepository`, every store method owns its database session;
writes go through :func:`bayb_db.engine.transaction` and commit as a unit.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from bayb_interview.constants import (
    ANSWERS_KEY,
    COMPLETE_KEY,
    COMPLETED_AT_KEY,
    FIELD_KEY,
    ONBOARDING_PREFIX,
)
from bayb_interview.interfaces import AnswerStore
from bayb_interview.models.answers import (
    OnboardingStatus,
    decode_answers,
    encode_answers,
)

from bayb_db.engine import SessionFactory, get_session_factory, transaction
from bayb_db.repository import KVRepository

logger = logging.getLogger(__name__)


def _require_user(user_id: str | None) -> str:
    if not user_id:
        raise ValueError("User ID is required")
    return user_id


class KVAnswerStore(AnswerStore):
    """Answer store backed by :class:`KVRepository`.

    Args:
        repo: repository to use (default: a new :class:`KVRepository`)
        session_factory: zero-argument callable returning an async session
            context manager (default: the shared engine's factory)
    """

    def __init__(
        self,
        repo: KVRepository | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._repo = repo or KVRepository()
        self._session_factory = session_factory

    def _sessions(self):
        return (self._session_factory or get_session_factory())()

    # ------------------------------------------------------------------
    # AnswerStore
    # ------------------------------------------------------------------

    async def save_answer(
        self,
        user_id: str,
        field: str,
        value: Any,
        snapshot: Mapping[str, Any],
    ) -> None:
        """Write the full snapshot and the single answered field."""
        _require_user(user_id)
        async with transaction(self._session_factory) as db:
            await self._repo.set(db, ANSWERS_KEY.format(user_id=user_id), encode_answers(snapshot))
            await self._repo.set(db, FIELD_KEY.format(user_id=user_id, field=field), value)
        logger.debug("Saved %s for user %s", field, user_id)

    async def complete_interview(self, user_id: str, snapshot: Mapping[str, Any]) -> None:
        """Write the final snapshot, the completion flag and its timestamp."""
        _require_user(user_id)
        completed_at = datetime.now(timezone.utc).isoformat()
        async with transaction(self._session_factory) as db:
            await self._repo.set(db, ANSWERS_KEY.format(user_id=user_id), encode_answers(snapshot))
            await self._repo.set(db, COMPLETE_KEY.format(user_id=user_id), True)
            await self._repo.set(db, COMPLETED_AT_KEY.format(user_id=user_id), completed_at)
        logger.info("Onboarding completed for user %s (%d answers)", user_id, len(snapshot))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_status(self, user_id: str) -> OnboardingStatus:
        """Return whether the user finished onboarding, and when."""
        _require_user(user_id)
        complete_key = COMPLETE_KEY.format(user_id=user_id)
        completed_at_key = COMPLETED_AT_KEY.format(user_id=user_id)
        async with self._sessions() as db:
            values = await self._repo.mget(db, [complete_key, completed_at_key])

        completed = values.get(complete_key)
        return OnboardingStatus(
            # Older writers stored the flag as the string "true"
            completed=completed is True or completed == "true",
            completed_at=values.get(completed_at_key),
        )

    async def get_answers(self, user_id: str) -> dict[str, Any] | None:
        """Return the stored answers snapshot, or None if nothing was saved."""
        _require_user(user_id)
        async with self._sessions() as db:
            raw = await self._repo.get(db, ANSWERS_KEY.format(user_id=user_id))
        if raw is None:
            return None
        return decode_answers(raw)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def reset(self, user_id: str) -> int:
        """Delete every onboarding key of ``user_id`` so the interview can be retaken.

        Returns the number of keys removed.
        """
        _require_user(user_id)
        async with transaction(self._session_factory) as db:
            keys = await self._repo.get_by_prefix(db, ONBOARDING_PREFIX.format(user_id=user_id))
            removed = 0
            for key in keys:
                if await self._repo.delete(db, key):
                    removed += 1
        logger.info("Reset onboarding for user %s (%d keys removed)", user_id, removed)
        return removed
