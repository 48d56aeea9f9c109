"""Active-sequence computation.

The active sequence is derived, never stored: it is the catalog filtered by
each question's condition against the current answers, in catalog order.
It is recomputed after every answer change because a gating answer can add
or remove downstream questions.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from bayb_interview.evaluator import ConditionEvaluator
from bayb_interview.models.question import QuestionDefinition

_evaluator = ConditionEvaluator()


def compute_active_sequence(
    catalog: Sequence[QuestionDefinition],
    answers: Mapping[str, Any],
) -> list[QuestionDefinition]:
    """Return the questions of ``catalog`` that are active for ``answers``.

    Pure and deterministic: filtering only, relative catalog order is kept.
    """
    return [q for q in catalog if _evaluator.is_active(q, answers)]


def next_position_after(
    sequence: Sequence[QuestionDefinition],
    answered: QuestionDefinition,
    catalog: Sequence[QuestionDefinition],
) -> int:
    """Position in ``sequence`` to present after ``answered`` was submitted.

    Normally the slot right after the answered question.  If recomputation
    dropped the answered question from ``sequence``, the first question
    that follows it in catalog order is used instead.  May return
    ``len(sequence)`` when nothing follows.
    """
    for idx, q in enumerate(sequence):
        if q.id == answered.id:
            return idx + 1

    catalog_index = {q.id: i for i, q in enumerate(catalog)}
    answered_at = catalog_index.get(answered.id, -1)
    for idx, q in enumerate(sequence):
        if catalog_index.get(q.id, -1) > answered_at:
            return idx
    return len(sequence)
