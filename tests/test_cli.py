"""Terminal runner and settings tests."""

import random
import sys

import pytest

from bayb_interview.cli import (
    LoggingAnswerStore,
    cli,
    describe_condition,
    list_questions,
    random_answer,
    run_interview,
)
from bayb_interview.config import InterviewSettings, load_settings
from bayb_interview.models.session import QuestionPayload, QuestionStep


def _step(answer_field, requires_answer=True):
    return QuestionStep(
        position=1,
        total=3,
        progress=66.7,
        question=QuestionPayload(
            qid="qx",
            prompt="?",
            answer_field=answer_field,
            section="S",
            requires_answer=requires_answer,
        ),
    )


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("BAYB_QUESTION_BANK", "BAYB_AUDIO_ENABLED", "BAYB_LOG_LEVEL", "BAYB_PERSIST"):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.question_bank_path is None
        assert settings.audio_enabled is True
        assert settings.log_level == "INFO"
        assert settings.persist is False

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("BAYB_QUESTION_BANK", "/tmp/catalog.yaml")
        monkeypatch.setenv("BAYB_AUDIO_ENABLED", "off")
        monkeypatch.setenv("BAYB_LOG_LEVEL", "debug")
        monkeypatch.setenv("BAYB_PERSIST", "1")
        settings = load_settings()
        assert settings.question_bank_path == "/tmp/catalog.yaml"
        assert settings.audio_enabled is False
        assert settings.log_level == "DEBUG"
        assert settings.persist is True

    def test_settings_are_frozen(self):
        with pytest.raises(AttributeError):
            InterviewSettings().persist = True


class TestHelpers:

    def test_describe_condition(self, bank):
        assert describe_condition(bank.get("q1")) == "always"
        assert describe_condition(bank.get("q13")) == (
            "when hasPeriods contains_any yes|yeah AND usesPeriodTracker contains_any yes|yeah"
        )

    def test_list_questions(self, bank, capsys):
        list_questions(bank)
        out = capsys.readouterr().out
        assert out.startswith("72 questions in 12 sections")
        assert "workSituation contains_any job|work|both" in out

    def test_random_answer_markers_are_empty(self):
        assert random_answer(_step("cycles_intro", requires_answer=False), random.Random(0)) == ""

    def test_random_answer_uses_gating_pool(self):
        rng = random.Random(0)
        answers = {random_answer(_step("children"), rng) for _ in range(30)}
        assert "No" in answers
        assert len(answers) > 1


class TestRunInterview:

    @pytest.mark.asyncio
    async def test_random_run_completes(self, bank, capsys):
        settings = InterviewSettings(audio_enabled=True)
        answers = await run_interview(
            bank, LoggingAnswerStore(), settings, rng=random.Random(7),
        )

        assert answers is not None
        assert "ready" in answers
        assert "completion" in answers
        out = capsys.readouterr().out
        assert "Interview complete" in out
        assert "[voice]" in out

    @pytest.mark.asyncio
    async def test_run_without_audio(self, periods_bank, capsys):
        answers = await run_interview(
            periods_bank,
            LoggingAnswerStore(),
            InterviewSettings(audio_enabled=False),
            rng=random.Random(1),
        )
        assert set(answers) == {"ready", "hasPeriods"}
        assert "[voice]" not in capsys.readouterr().out


class TestArguments:

    def test_reset_requires_persist(self, monkeypatch, capsys):
        monkeypatch.delenv("BAYB_PERSIST", raising=False)
        monkeypatch.setattr(sys, "argv", ["bayb-interview", "--reset"])
        with pytest.raises(SystemExit) as exc_info:
            cli()
        assert exc_info.value.code == 2
        assert "--reset requires --persist" in capsys.readouterr().err
