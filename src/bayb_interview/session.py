"""InterviewSession: the turn-by-turn onboarding state machine.

One session drives one user through the active question sequence:

    created -> presenting -> awaiting_answer -> advancing -> presenting ...
                                                          -> completed

The session is single-threaded and cooperative: every method runs on the
event loop of the host.  Speech output, speech input and the answer store
are injected collaborators (see :mod:`bayb_interview.interfaces`).
Persistence is dispatched as background tasks; the session never waits on
a write to advance, and a failed write is logged and otherwise ignored.
Writes are chained so they reach the store in submit order.

Answers are the only source of truth for branching: the active sequence is
recomputed from them after every submit.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Coroutine, Optional

from bayb_interview.constants import COMPLETION_DELAY_SECONDS
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
from bayb_interview.question_bank import QuestionBank
from bayb_interview.sequencer import compute_active_sequence, next_position_after

logger = logging.getLogger(__name__)


class InterviewSession:
    """Runs the onboarding interview for a single user.

    Args:
        bank: a loaded :class:`QuestionBank`
        user_id: identity attached to every persistence call
        store: where answers and the completion marker are written
        speech_output: optional text-to-speech collaborator
        speech_input: optional speech-to-text collaborator
        on_complete: called once, ``completion_delay`` seconds after the
            interview completes (may be sync or async)
        completion_delay: seconds between completion and ``on_complete``
        audio_enabled: initial audio toggle
    """

    def __init__(
        self,
        bank: QuestionBank,
        *,
        user_id: str,
        store: AnswerStore,
        speech_output: Optional[SpeechOutput] = None,
        speech_input: Optional[SpeechInput] = None,
        on_complete: Optional[Callable[[], Any]] = None,
        completion_delay: float = COMPLETION_DELAY_SECONDS,
        audio_enabled: bool = True,
    ) -> None:
        self._bank = bank
        self._user_id = user_id
        self._store = store
        self._speech_output = speech_output
        self._speech_input = speech_input
        self._on_complete = on_complete
        self._completion_delay = completion_delay
        self._audio_enabled = audio_enabled

        self._state = TurnState.CREATED
        self._answers: dict[str, Any] = {}
        self._sequence: list[QuestionDefinition] = []
        self._position = 0

        # Transcript of the current turn; only a final one can be submitted
        self._transcript = ""
        self._transcript_final = False

        # Position whose prompt has been spoken; None after every move
        self._spoken_position: Optional[int] = None

        self._speaking = False
        self._listening = False

        # Identity of the utterance / capture whose callbacks are current.
        # Callbacks from superseded ones are ignored.
        self._utterance_token: Optional[object] = None
        self._capture_token: Optional[object] = None

        # Writes run one after another in dispatch order
        self._pending: set[asyncio.Task] = set()
        self._last_write: Optional[asyncio.Task] = None
        self._notifier: Optional[asyncio.Task] = None
        self._notified = False

    # ==================================================================
    # Lifecycle
    # ==================================================================

    async def start(self) -> StepResult:
        """Begin the interview at position 0 and present the first prompt.

        Raises:
            ValueError: if the session was already started or no question
                is active for empty answers.
        """
        if self._state is not TurnState.CREATED:
            raise ValueError(
                f"Cannot start: session state is '{self._state.value}', expected 'created'"
            )

        self._answers = {}
        self._position = 0
        self._sequence = compute_active_sequence(self._bank.questions, self._answers)
        if not self._sequence:
            raise ValueError("Cannot start: the active question sequence is empty")

        logger.info(
            "Interview started for user %s: %d of %d questions active",
            self._user_id, len(self._sequence), len(self._bank),
        )
        self._present()
        return self.current_step()

    async def submit(self) -> StepResult:
        """Accept the current transcript as the answer and move on.

        An empty answer to a question that requires one is ignored and the
        current step is returned unchanged.

        Processing has no suspension point: a second submit issued while
        this one runs only starts after the position has moved, and then
        sees a cleared transcript.  The write it dispatches is queued
        behind every earlier write.

        Raises:
            ValueError: if the session is not started or already complete.
        """
        self._require_active("submit")

        question = self.current_question
        value = self._answer_text()
        if question.requires_answer and not value:
            logger.debug("Submit rejected: empty answer for %s", question.id)
            return self.current_step()

        self._state = TurnState.ADVANCING
        was_last = self._position >= len(self._sequence) - 1

        self._answers[question.answer_field] = value
        snapshot = dict(self._answers)
        self._dispatch(
            self._store.save_answer(self._user_id, question.answer_field, value, snapshot),
            f"save_answer({question.answer_field})",
        )

        self._sequence = compute_active_sequence(self._bank.questions, self._answers)
        self._reset_turn()

        if was_last:
            self._complete(snapshot)
        else:
            next_position = next_position_after(self._sequence, question, self._bank.questions)
            if next_position >= len(self._sequence):
                logger.warning(
                    "No active question follows %s; completing interview", question.id
                )
                self._complete(snapshot)
            else:
                self._move_to(next_position)

        return self.current_step()

    async def back(self) -> StepResult:
        """Return to the previous position, keeping stored answers.

        Raises:
            ValueError: if the session is not active or already at the
                first question.
        """
        self._require_active("go back")
        if self._position == 0:
            raise ValueError("Cannot go back: already at the first question")

        self._reset_turn()
        self._move_to(self._position - 1)
        return self.current_step()

    async def drain(self) -> None:
        """Wait for every dispatched persistence call to settle."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def wait_for_completion(self) -> None:
        """Wait until the host has been notified of completion.

        Raises:
            ValueError: if the interview has not completed.
        """
        if self._notifier is None:
            raise ValueError("Interview has not completed")
        await self._notifier

    # ==================================================================
    # Presentation and audio
    # ==================================================================

    def present(self) -> None:
        """Emit the current prompt unless it was already emitted here.

        Safe to call on every re-render.
        """
        if self._state in (TurnState.PRESENTING, TurnState.AWAITING_ANSWER):
            self._present()

    def toggle_audio(self) -> bool:
        """Flip the audio toggle; disabling it cancels in-flight speech."""
        self._audio_enabled = not self._audio_enabled
        if not self._audio_enabled:
            self._stop_speaking()
        logger.info("Audio %s", "enabled" if self._audio_enabled else "disabled")
        return self._audio_enabled

    def _present(self) -> None:
        self._state = TurnState.PRESENTING
        if self._spoken_position != self._position:
            # Marked even when muted so unmuting does not replay the prompt
            self._spoken_position = self._position
            self._speak(self.current_question)
        self._state = TurnState.AWAITING_ANSWER

    def _speak(self, question: QuestionDefinition) -> None:
        if not self._audio_enabled or self._speech_output is None:
            return

        token = object()
        self._utterance_token = token

        def on_end() -> None:
            if self._utterance_token is token:
                self._utterance_token = None
                self._speaking = False

        def on_error(exc: Exception) -> None:
            logger.warning("Speech output failed for %s: %s", question.id, exc)
            on_end()

        self._speaking = True
        try:
            self._speech_output.speak(
                question.prompt, SpeechCallbacks(on_end=on_end, on_error=on_error)
            )
        except Exception as exc:
            logger.error("Could not start speech output for %s: %s", question.id, exc)
            on_end()

    def _stop_speaking(self) -> None:
        self._utterance_token = None
        self._speaking = False
        if self._speech_output is not None:
            self._speech_output.cancel()

    # ==================================================================
    # Capture
    # ==================================================================

    def start_listening(self) -> bool:
        """Start a speech-input capture for the current question.

        In-flight speech is cancelled first.  Returns False when there is
        no speech input, a capture is already running, the session is not
        awaiting an answer, or the recognizer fails to start.
        """
        if (
            self._speech_input is None
            or self._listening
            or self._state is not TurnState.AWAITING_ANSWER
        ):
            return False

        self._stop_speaking()
        self._transcript = ""
        self._transcript_final = False

        token = object()
        self._capture_token = token

        def on_result(text: str, is_final: bool) -> None:
            if self._capture_token is token:
                self._transcript = text
                self._transcript_final = is_final

        def on_end() -> None:
            if self._capture_token is token:
                self._capture_token = None
                self._listening = False

        def on_error(exc: Exception) -> None:
            logger.warning("Speech capture failed: %s", exc)
            on_end()

        self._listening = True
        try:
            self._speech_input.start_listening(
                CaptureCallbacks(on_result=on_result, on_end=on_end, on_error=on_error)
            )
        except Exception as exc:
            logger.error("Error starting speech capture: %s", exc)
            self._capture_token = None
            self._listening = False
            return False
        return True

    def stop_listening(self) -> None:
        """Stop the running capture.  A final result may still arrive."""
        if not self._listening or self._speech_input is None:
            return
        self._speech_input.stop_listening()
        self._listening = False

    def set_transcript(self, text: str) -> None:
        """Record a typed answer for the current question."""
        if self._state is not TurnState.AWAITING_ANSWER:
            raise ValueError(
                f"Cannot set transcript: session state is '{self._state.value}'"
            )
        self._transcript = text
        self._transcript_final = True

    # ==================================================================
    # Read-only views
    # ==================================================================

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def position(self) -> int:
        return self._position

    @property
    def answers(self) -> dict[str, Any]:
        """Copy of the accumulated answers."""
        return dict(self._answers)

    @property
    def active_sequence(self) -> list[QuestionDefinition]:
        return list(self._sequence)

    @property
    def current_question(self) -> Optional[QuestionDefinition]:
        if not self._sequence:
            return None
        return self._sequence[self._position]

    @property
    def current_transcript(self) -> str:
        return self._transcript

    @property
    def spoken_position(self) -> Optional[int]:
        return self._spoken_position

    @property
    def is_complete(self) -> bool:
        return self._state is TurnState.COMPLETED

    @property
    def is_speaking(self) -> bool:
        return self._speaking

    @property
    def is_listening(self) -> bool:
        return self._listening

    @property
    def audio_enabled(self) -> bool:
        return self._audio_enabled

    @property
    def progress(self) -> float:
        """Percent of the active sequence reached, counting the current question."""
        if not self._sequence:
            return 0.0
        return (self._position + 1) / len(self._sequence) * 100

    @property
    def can_submit(self) -> bool:
        if self._state is not TurnState.AWAITING_ANSWER:
            return False
        return not self.current_question.requires_answer or bool(self._answer_text())

    @property
    def can_go_back(self) -> bool:
        return self._state is TurnState.AWAITING_ANSWER and self._position > 0

    def current_step(self) -> StepResult:
        """Build the step the host should render now.

        Raises:
            ValueError: if the session has not been started.
        """
        if self._state is TurnState.CREATED:
            raise ValueError("Session has not been started")

        if self._state is TurnState.COMPLETED:
            return CompletionStep(total=len(self._sequence), answers=dict(self._answers))

        question = self.current_question
        return QuestionStep(
            position=self._position,
            total=len(self._sequence),
            progress=self.progress,
            question=QuestionPayload(
                qid=question.id,
                prompt=question.prompt,
                answer_field=question.answer_field,
                section=question.section,
                requires_answer=question.requires_answer,
            ),
            transcript=self._transcript,
            can_submit=self.can_submit,
            can_go_back=self.can_go_back,
            previous_answer=self._answers.get(question.answer_field),
        )

    def info(self) -> SessionInfo:
        return SessionInfo(
            user_id=self._user_id,
            state=self._state,
            position=self._position,
            total=len(self._sequence),
            answered=len(self._answers),
            is_complete=self.is_complete,
            audio_enabled=self._audio_enabled,
        )

    # ==================================================================
    # Internal helpers
    # ==================================================================

    def _require_active(self, action: str) -> None:
        if self._state in (TurnState.CREATED, TurnState.COMPLETED):
            raise ValueError(
                f"Cannot {action}: session state is '{self._state.value}'"
            )

    def _answer_text(self) -> str:
        return self._transcript.strip() if self._transcript_final else ""

    def _move_to(self, position: int) -> None:
        self._position = position
        self._present()

    def _reset_turn(self) -> None:
        """Clear per-position state before the position changes."""
        if self._listening and self._speech_input is not None:
            self._speech_input.stop_listening()
        self._listening = False
        self._capture_token = None
        self._transcript = ""
        self._transcript_final = False
        self._spoken_position = None

    def _complete(self, snapshot: dict[str, Any]) -> None:
        self._dispatch(
            self._store.complete_interview(self._user_id, snapshot),
            "complete_interview",
        )
        self._state = TurnState.COMPLETED
        logger.info(
            "Interview completed for user %s with %d answers", self._user_id, len(snapshot)
        )
        self._notifier = asyncio.get_running_loop().create_task(self._notify_complete())

    async def _notify_complete(self) -> None:
        await self.drain()
        await asyncio.sleep(self._completion_delay)
        if self._on_complete is None or self._notified:
            return
        self._notified = True
        try:
            result = self._on_complete()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("on_complete callback failed for user %s", self._user_id)

    def _dispatch(self, call: Coroutine[Any, Any, None], label: str) -> None:
        task = asyncio.get_running_loop().create_task(
            self._guard(call, label, self._last_write)
        )
        self._last_write = task
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _guard(
        self,
        call: Awaitable[None],
        label: str,
        previous: Optional[asyncio.Task],
    ) -> None:
        if previous is not None:
            # asyncio.wait does not raise if the previous write failed
            await asyncio.wait({previous})
        try:
            await call
        except Exception:
            logger.exception("Persistence call %s failed for user %s", label, self._user_id)
