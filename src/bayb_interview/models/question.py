"""Question definition models for the onboarding interview catalog.

Each catalog entry is a ``QuestionDefinition``: an id, the prompt spoken to
the user, the answer field its reply is stored under, a display-only
section label, and a gating ``Condition``.

Conditions are a tagged variant discriminated on ``kind``:

  - always:    the question is always active (the default)
  - predicate: the question is active iff ALL ``when`` predicates hold
               against the current accumulated answers

Marker questions (the introduction, the completion message and section
intros) are ordinary questions that do not require an answer.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from bayb_interview.constants import COMPLETION_QID, INTRO_QID, SECTION_INTRO_SUFFIX


class Predicate(BaseModel):
    """A substring test against a previously collected answer.

    Operators:
      - contains_any:  the answer contains at least one of ``value``
      - contains_none: the answer contains none of ``value``

    Matching is case-insensitive.  Answers are spoken or typed free text,
    so "Yeah, I still do" satisfies ``contains_any ["yes", "yeah"]``.
    """

    model_config = ConfigDict(frozen=True)

    field: str
    op: Literal["contains_any", "contains_none"]
    value: List[str] = Field(min_length=1)


class AlwaysActive(BaseModel):
    """Condition for questions that are presented unconditionally."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["always"] = "always"


class PredicateCondition(BaseModel):
    """Condition that holds iff every predicate in ``when`` is true."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["predicate"] = "predicate"
    when: List[Predicate] = Field(min_length=1)


# Discriminated union: Pydantic picks the right type from the "kind" field.
Condition = Annotated[Union[AlwaysActive, PredicateCondition], Field(discriminator="kind")]


class QuestionDefinition(BaseModel):
    """One entry of the interview catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    prompt: str
    answer_field: str
    section: str
    condition: Condition = AlwaysActive()

    @property
    def is_conditional(self) -> bool:
        return isinstance(self.condition, PredicateCondition)

    @property
    def is_marker(self) -> bool:
        """True for the introduction, the completion message and section intros."""
        return (
            self.id in (INTRO_QID, COMPLETION_QID)
            or self.id.endswith(SECTION_INTRO_SUFFIX)
        )

    @property
    def requires_answer(self) -> bool:
        """Markers may be submitted with an empty transcript."""
        return not self.is_marker

    @property
    def referenced_fields(self) -> set[str]:
        """Answer fields the gating condition reads."""
        if isinstance(self.condition, PredicateCondition):
            return {pred.field for pred in self.condition.when}
        return set()
