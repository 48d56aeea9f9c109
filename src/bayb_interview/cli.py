"""Terminal runner for the onboarding interview.

Runs an :class:`InterviewSession` in the console.  Prompts are printed,
and with audio on, the text a speech engine would receive is echoed as a
``[voice]`` line.  Typed lines are answers; a few commands drive the rest:

    :back   return to the previous question
    :mute   toggle audio
    :quit   stop without completing

With ``--random`` the runner answers by itself from canned pools, so each
run explores a different path through the gated sections.

Usage::

    bayb-interview                      # interactive
    bayb-interview --random --seed 7    # reproducible random walk
    bayb-interview --list-questions     # print the catalog and its gating
    bayb-interview --persist            # write answers to the KV store
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
from dataclasses import replace
from typing import Any, Mapping

from bayb_interview.config import InterviewSettings, load_settings
from bayb_interview.interfaces import AnswerStore
from bayb_interview.models.question import PredicateCondition, QuestionDefinition
from bayb_interview.models.session import QuestionStep
from bayb_interview.question_bank import QuestionBank
from bayb_interview.session import InterviewSession
from bayb_interview.speech import ManagedSpeechOutput, SpeechBackend

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_SINGLE_LINE = "-" * 62
_DOUBLE_LINE = "=" * 62

_DEFAULT_USER_ID = "cli_user"

# Answers for the gating questions, so --random mode takes every branch
# some of the time.
_RANDOM_GATING_ANSWERS: dict[str, list[str]] = {
    "hasPeriods": ["Yes, I still do", "No, not anymore", "Yeah"],
    "usesPeriodTracker": ["Yes, I use Flo", "No"],
    "wantsDataIntegration": ["Yeah, let's do it", "No thanks"],
    "energyChanges": ["Yes, a lot", "Not really"],
    "children": [
        "No",
        "Yes, two. Mia is 7 and Leo is 4",
        "I don't have kids",
        "One daughter, Ava, she's 10",
    ],
    "scanSchoolEmails": ["Yes please", "No"],
    "workSituation": [
        "I have a full-time job",
        "I stay at home with the kids",
        "Both, I run a business from home",
    ],
}

# Everything else gets free text.
_RANDOM_FREE_TEXT_POOL = [
    "Around 10pm, about seven hours",
    "Not sure, maybe",
    "Mostly in the mornings",
    "Yes",
    "No",
    "A little bit of everything",
    "I'd rather not say",
]


class ConsoleSpeechBackend(SpeechBackend):
    """Speech backend that prints what would be spoken."""

    name = "console"

    async def play(self, text: str) -> None:
        print(f" [voice] {text}")


class LoggingAnswerStore(AnswerStore):
    """Answer store that only logs, for runs without a database."""

    async def save_answer(
        self,
        user_id: str,
        field: str,
        value: Any,
        snapshot: Mapping[str, Any],
    ) -> None:
        logger.info("save_answer user=%s %s=%r (%d fields)", user_id, field, value, len(snapshot))

    async def complete_interview(self, user_id: str, snapshot: Mapping[str, Any]) -> None:
        logger.info("complete_interview user=%s (%d fields)", user_id, len(snapshot))


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def describe_condition(question: QuestionDefinition) -> str:
    """One-line rendering of a question's gating condition."""
    condition = question.condition
    if not isinstance(condition, PredicateCondition):
        return "always"
    parts = []
    for pred in condition.when:
        parts.append(f"{pred.field} {pred.op} {'|'.join(pred.value)}")
    return "when " + " AND ".join(parts)


def list_questions(bank: QuestionBank) -> None:
    """Print the catalog in order with sections and gating."""
    print(f"{len(bank)} questions in {len(bank.sections)} sections")
    section = None
    for i, q in enumerate(bank, 1):
        if q.section != section:
            section = q.section
            print(f"\n {section}")
        print(f"  {i:2d}. {q.id:<17s} {q.answer_field:<27s} {describe_condition(q)}")


def print_step(step: QuestionStep) -> None:
    print(f"\n{_SINGLE_LINE}")
    print(
        f" [{step.position + 1}/{step.total} {step.progress:.0f}%] "
        f"{step.question.section} ({step.question.qid})"
    )
    print(f" {step.question.prompt}")
    if step.previous_answer is not None:
        print(f" (previous answer: {step.previous_answer})")


def random_answer(step: QuestionStep, rng: random.Random) -> str:
    """Pick an answer for ``step`` in --random mode."""
    if not step.question.requires_answer:
        return ""
    pool = _RANDOM_GATING_ANSWERS.get(step.question.answer_field, _RANDOM_FREE_TEXT_POOL)
    return rng.choice(pool)


# ---------------------------------------------------------------------------
# Interview loop
# ---------------------------------------------------------------------------


async def _read_line() -> str:
    try:
        return await asyncio.to_thread(input, " > ")
    except EOFError:
        return ":quit"


async def run_interview(
    bank: QuestionBank,
    store: AnswerStore,
    settings: InterviewSettings,
    *,
    user_id: str = _DEFAULT_USER_ID,
    rng: random.Random | None = None,
) -> dict[str, Any] | None:
    """Drive one interview in the terminal.

    Returns the collected answers, or None when the user quit early.
    """
    speech_output = ManagedSpeechOutput([ConsoleSpeechBackend()])
    session = InterviewSession(
        bank,
        user_id=user_id,
        store=store,
        speech_output=speech_output,
        completion_delay=0.0 if rng is not None else settings.completion_delay,
        on_complete=lambda: print(f"\n{_DOUBLE_LINE}\n Interview complete\n{_DOUBLE_LINE}"),
        audio_enabled=settings.audio_enabled,
    )

    step = await session.start()
    while isinstance(step, QuestionStep):
        print_step(step)
        # Let the voice line print before the input prompt
        await asyncio.sleep(0)

        if rng is not None:
            line = random_answer(step, rng)
            print(f" > {line}")
        else:
            line = await _read_line()

        command = line.strip().lower()
        if command == ":quit":
            speech_output.cancel()
            await session.drain()
            print(" Stopped before completion.")
            return None
        if command == ":back":
            if step.can_go_back:
                step = await session.back()
            else:
                print(" (already at the first question)")
            continue
        if command == ":mute":
            enabled = session.toggle_audio()
            print(f" (audio {'on' if enabled else 'off'})")
            continue

        session.set_transcript(line)
        next_step = await session.submit()
        if isinstance(next_step, QuestionStep) and next_step.position == step.position:
            print(" (an answer is required)")
        step = next_step

    await session.wait_for_completion()
    return session.answers


def _print_answers(answers: Mapping[str, Any]) -> None:
    width = max((len(k) for k in answers), default=0)
    for field, value in answers.items():
        print(f"  {field:<{width}s}  {value}")


async def _run(args: argparse.Namespace, settings: InterviewSettings, bank: QuestionBank) -> int:
    rng = random.Random(args.seed) if args.random else None

    if args.persist:
        from bayb_db.engine import dispose_engine
        from bayb_db.store import KVAnswerStore

        store: AnswerStore = KVAnswerStore()
    else:
        store = LoggingAnswerStore()

    try:
        if args.reset:
            removed = await store.reset(args.user_id)
            print(f" Cleared {removed} stored onboarding keys for {args.user_id}")
        answers = await run_interview(bank, store, settings, user_id=args.user_id, rng=rng)
    finally:
        if args.persist:
            await dispose_engine()

    if answers is None:
        return 1
    print(f"\n Collected {len(answers)} answers:")
    _print_answers(answers)
    return 0


def cli() -> None:
    """Console-script entry point: ``bayb-interview``."""
    settings = load_settings()

    parser = argparse.ArgumentParser(
        description="Run the BAYB onboarding interview in the terminal.",
    )
    parser.add_argument(
        "--catalog",
        default=settings.question_bank_path,
        help="Question catalog YAML (default: the packaged onboarding catalog)",
    )
    parser.add_argument(
        "--user-id",
        default=_DEFAULT_USER_ID,
        help=f"User id attached to saved answers (default: {_DEFAULT_USER_ID})",
    )
    parser.add_argument(
        "--list-questions",
        action="store_true",
        help="Print the catalog with its gating conditions and exit",
    )
    parser.add_argument(
        "--random",
        action="store_true",
        help="Answer automatically from canned pools",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for --random (default: unseeded)",
    )
    parser.add_argument(
        "--audio",
        action=argparse.BooleanOptionalAction,
        default=settings.audio_enabled,
        help="Echo the spoken form of each prompt (default: on)",
    )
    parser.add_argument(
        "--persist",
        action=argparse.BooleanOptionalAction,
        default=settings.persist,
        help="Write answers to the key-value store (needs DATABASE_URL or PG_*)",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="With --persist, delete the user's stored onboarding keys before starting",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    args = parser.parse_args()
    if args.reset and not args.persist:
        parser.error("--reset requires --persist")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format=_LOG_FORMAT,
    )

    bank = QuestionBank(args.catalog)
    bank.load()

    if args.list_questions:
        list_questions(bank)
        sys.exit(0)

    run_settings = replace(
        settings,
        question_bank_path=args.catalog,
        audio_enabled=args.audio,
        persist=args.persist,
    )
    sys.exit(asyncio.run(_run(args, run_settings, bank)))


if __name__ == "__main__":
    cli()
