"""Public model re-exports for bayb_interview.

Consumers should import from ``bayb_interview.models`` rather than
reaching into sub-modules directly.
"""

# --- Questions ---
from bayb_interview.models.question import (
    AlwaysActive,
    Condition,
    Predicate,
    PredicateCondition,
    QuestionDefinition,
)

# --- Answers ---
from bayb_interview.models.answers import (
    AnswerSnapshot,
    AnswerValue,
    OnboardingStatus,
    decode_answers,
    encode_answers,
)

# --- Session / step ---
from bayb_interview.models.session import (
    CompletionStep,
    QuestionPayload,
    QuestionStep,
    SessionInfo,
    StepResult,
    TurnState,
)

__all__ = [
    # Questions
    "AlwaysActive",
    "Condition",
    "Predicate",
    "PredicateCondition",
    "QuestionDefinition",
    # Answers
    "AnswerSnapshot",
    "AnswerValue",
    "OnboardingStatus",
    "decode_answers",
    "encode_answers",
    # Session
    "CompletionStep",
    "QuestionPayload",
    "QuestionStep",
    "SessionInfo",
    "StepResult",
    "TurnState",
]
