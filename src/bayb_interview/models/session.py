"""Session and step models: the contract between the session and its host.

These models describe what the host renders at each turn of the interview.
They are read-only snapshots; the ``InterviewSession`` owns the mutable
state and produces a fresh step on demand.

Step types:
  - QuestionStep: a question is in front of the user
  - CompletionStep: the interview finished and answers were handed off

The ``StepResult`` union covers both cases so callers can dispatch on ``type``.
"""

import enum
from typing import Any, Literal

from pydantic import BaseModel


class TurnState(str, enum.Enum):
    """Lifecycle states of an interview session.

    Transitions:
        created -> presenting              (start)
        presenting -> awaiting_answer      (prompt emitted)
        awaiting_answer -> advancing       (valid submit)
        advancing -> presenting            (next or previous position)
        advancing -> completed             (last question submitted)
        awaiting_answer -> presenting      (back)
    """

    CREATED = "created"
    PRESENTING = "presenting"
    AWAITING_ANSWER = "awaiting_answer"
    ADVANCING = "advancing"
    COMPLETED = "completed"


class QuestionPayload(BaseModel):
    """Flattened question for the host.

    Strips the gating condition and presents only what the UI needs.
    """

    qid: str
    prompt: str
    answer_field: str
    section: str
    requires_answer: bool


class QuestionStep(BaseModel):
    """Session step: a question is presented and an answer is awaited."""

    type: Literal["question"] = "question"
    position: int
    total: int
    # (position + 1) / total * 100, as shown in the progress bar
    progress: float
    question: QuestionPayload
    transcript: str = ""
    can_submit: bool = False
    can_go_back: bool = False
    # Stored answer for this question, if the user already gave one
    previous_answer: Any = None


class CompletionStep(BaseModel):
    """Session step: the interview is complete."""

    type: Literal["completed"] = "completed"
    total: int
    answers: dict[str, Any]


# Callers can match on step.type to dispatch rendering logic.
StepResult = QuestionStep | CompletionStep


class SessionInfo(BaseModel):
    """Public view of session state."""

    user_id: str
    state: TurnState
    position: int
    total: int
    answered: int
    is_complete: bool
    audio_enabled: bool
