"""bayb_interview: voice-driven onboarding interview SDK.

Public API:
    InterviewSession     : turn-by-turn interview state machine
    QuestionBank         : loads the question catalog YAML into typed models
    compute_active_sequence : catalog filtered by the current answers
    ConditionEvaluator   : evaluates a question's gating condition

Collaborator interfaces:
    SpeechOutput / SpeechInput / AnswerStore : ABCs the session drives
    ManagedSpeechOutput  : speech output with ordered backend fallback
    SpeechBackend        : one synthesis engine behind ManagedSpeechOutput

Step models:
    QuestionStep         : step with a question in front of the user
    CompletionStep       : step after the interview completed
    StepResult           : union of the two
    SessionInfo          : public view of session state
"""

from bayb_interview.evaluator import ConditionEvaluator
from bayb_interview.interfaces import (
    AnswerStore,
    CaptureCallbacks,
    SpeechCallbacks,
    SpeechInput,
    SpeechOutput,
)
from bayb_interview.models.question import QuestionDefinition
from bayb_interview.models.session import (
    CompletionStep,
    QuestionPayload,
    QuestionStep,
    SessionInfo,
    StepResult,
    TurnState,
)
from bayb_interview.question_bank import QuestionBank, find_authoring_errors
from bayb_interview.sequencer import compute_active_sequence, next_position_after
from bayb_interview.session import InterviewSession
from bayb_interview.speech import (
    ManagedSpeechOutput,
    SpeechBackend,
    preprocess_text_for_tts,
)

__all__ = [
    # Session & catalog
    "InterviewSession",
    "QuestionBank",
    "QuestionDefinition",
    "ConditionEvaluator",
    "compute_active_sequence",
    "next_position_after",
    "find_authoring_errors",
    # Collaborators
    "AnswerStore",
    "CaptureCallbacks",
    "SpeechCallbacks",
    "SpeechInput",
    "SpeechOutput",
    "ManagedSpeechOutput",
    "SpeechBackend",
    "preprocess_text_for_tts",
    # Session / step
    "CompletionStep",
    "QuestionPayload",
    "QuestionStep",
    "SessionInfo",
    "StepResult",
    "TurnState",
]
