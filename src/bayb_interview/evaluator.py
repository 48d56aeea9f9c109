"""ConditionEvaluator: decides whether a question is active.

The sequencer calls :meth:`is_active` for every catalog entry against the
current accumulated answers.  ``always`` conditions are trivially true;
``predicate`` conditions AND their predicates together.

Answers are free text, so predicates are case-insensitive substring tests
on the answer's text.  Numbers (height, weight) are matched on their
string form.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from bayb_interview.models.question import (
    AlwaysActive,
    Condition,
    Predicate,
    PredicateCondition,
    QuestionDefinition,
)

logger = logging.getLogger(__name__)


class ConditionEvaluator:
    """Evaluates gating conditions against an answers snapshot."""

    def is_active(self, question: QuestionDefinition, answers: Mapping[str, Any]) -> bool:
        """True if ``question`` should appear in the active sequence."""
        return self.evaluate(question.condition, answers)

    def evaluate(self, condition: Condition, answers: Mapping[str, Any]) -> bool:
        """Dispatch on the condition kind."""
        if isinstance(condition, AlwaysActive):
            return True
        if isinstance(condition, PredicateCondition):
            return all(self._eval_predicate(pred, answers) for pred in condition.when)
        logger.warning("evaluate() called with unknown condition: %r", condition)
        return False

    def _eval_predicate(self, pred: Predicate, answers: Mapping[str, Any]) -> bool:
        """Evaluate a single predicate against the answers mapping.

        An unanswered field makes the predicate false, for ``contains_none``
        too: a question gated on "has children" stays hidden until the
        children question has actually been answered.
        """
        answer = answers.get(pred.field)
        if answer is None:
            return False

        found = mentions_any(answer, pred.value)
        if pred.op == "contains_any":
            return found
        return not found


def mentions_any(answer: Any, needles: list[str]) -> bool:
    """True if any needle occurs in the answer text, ignoring case."""
    text = str(answer).lower()
    return any(needle.lower() in text for needle in needles)
