import pytest

from bayb_interview.question_bank import QuestionBank


@pytest.fixture(scope="session")
def bank():
    """Load the packaged onboarding catalog once for the entire test session."""
    b = QuestionBank()
    b.load()
    return b


@pytest.fixture
def periods_bank():
    """Three-question catalog: intro, hasPeriods, and one question gated on it."""
    return QuestionBank.from_questions([
        {"id": "intro", "prompt": "Hello. Are you ready?", "answer_field": "ready",
         "section": "Introduction"},
        {"id": "q1", "prompt": "Do you still get your period?", "answer_field": "hasPeriods",
         "section": "Cycles"},
        {"id": "q2", "prompt": "When was your last period?", "answer_field": "lastPeriodDate",
         "section": "Cycles",
         "condition": {"kind": "predicate", "when": [
             {"field": "hasPeriods", "op": "contains_any", "value": ["yes", "yeah", "still"]},
         ]}},
    ])


@pytest.fixture
def flow_bank(periods_bank):
    """The three-question catalog followed by an unconditional completion marker."""
    return QuestionBank.from_questions([
        *periods_bank.questions,
        {"id": "completion", "prompt": "All done.", "answer_field": "completion",
         "section": "Done"},
    ])
