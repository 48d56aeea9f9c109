"""Accumulated-answers snapshot and its persistence representation.

Answers are a flat mapping of answer field to a scalar value (free text in
practice).  The store keeps them as a JSON object, so encoding validates the
mapping and dumps it to JSON-compatible types; decoding accepts either the
stored object, JSON text, or ``None`` for "nothing stored yet".
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, RootModel

AnswerValue = Union[str, int, float, bool, None]


class AnswerSnapshot(RootModel[dict[str, AnswerValue]]):
    """Validated view of an accumulated-answers record."""


def encode_answers(answers: Mapping[str, Any]) -> dict[str, AnswerValue]:
    """Return the JSON-compatible representation stored for ``answers``."""
    return AnswerSnapshot(dict(answers)).model_dump(mode="json")


def decode_answers(raw: Mapping[str, Any] | str | bytes | None) -> dict[str, AnswerValue]:
    """Inverse of :func:`encode_answers`.

    Raises:
        pydantic.ValidationError: if ``raw`` is not a mapping of scalars.
    """
    if raw is None:
        return {}
    if isinstance(raw, (str, bytes)):
        return AnswerSnapshot.model_validate_json(raw).root
    return AnswerSnapshot.model_validate(dict(raw)).root


class OnboardingStatus(BaseModel):
    """Completion marker as recorded by the answer store."""

    completed: bool = False
    # ISO-8601 timestamp written on completion
    completed_at: Optional[str] = None
