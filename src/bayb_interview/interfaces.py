"""Abstract interfaces for the collaborators an interview session drives.

These ABCs define the contract that external implementations must fulfil.
The session depends on them only; concrete speech engines and stores live
elsewhere (``bayb_interview.speech`` ships a managed speech-output base and
``bayb_db`` ships the key-value answer store).

Typical integration flow::

    bank = QuestionBank()
    bank.load()

    session = InterviewSession(
        bank,
        user_id="user-123",
        store=KVAnswerStore(),
        speech_output=ManagedSpeechOutput([MyTTSBackend(), MyFallbackTTS()]),
        speech_input=MyRecognizer(),
        on_complete=host.show_dashboard,
    )
    await session.start()
    # ... mic button -> session.start_listening(); next -> await session.submit()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional


@dataclass
class SpeechCallbacks:
    """Lifecycle signals for one synthesized utterance."""

    on_start: Optional[Callable[[], None]] = None
    on_end: Optional[Callable[[], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None


@dataclass
class CaptureCallbacks:
    """Signals reported by a speech-input capture."""

    # (text, is_final); interim reports precede the final one
    on_result: Optional[Callable[[str, bool], None]] = None
    on_end: Optional[Callable[[], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None


class SpeechOutput(ABC):
    """Interface for text-to-speech playback.

    Implementations must guarantee that, once an utterance has started,
    exactly one of ``on_end`` / ``on_error`` eventually fires for it
    (cancellation counts as an end).
    """

    @abstractmethod
    def speak(self, text: str, callbacks: SpeechCallbacks | None = None) -> None:
        """Begin speaking ``text``; returns without waiting for playback.

        Starting a new utterance cancels the one in flight.
        """
        ...

    @abstractmethod
    def cancel(self) -> None:
        """Stop the in-flight utterance.  Safe to call when idle."""
        ...

    @property
    @abstractmethod
    def is_speaking(self) -> bool:
        ...


class SpeechInput(ABC):
    """Interface for speech-to-text capture of a single utterance."""

    @abstractmethod
    def start_listening(self, callbacks: CaptureCallbacks) -> None:
        """Start a capture.

        Transcript reports, end-of-capture and errors are delivered through
        ``callbacks``.  May raise if the recognizer cannot start.
        """
        ...

    @abstractmethod
    def stop_listening(self) -> None:
        """Stop the current capture.  Safe to call when idle."""
        ...


class AnswerStore(ABC):
    """Interface for persisting interview answers.

    Both calls are best effort from the session's point of view: the session
    catches and logs any exception and keeps going.
    """

    @abstractmethod
    async def save_answer(
        self,
        user_id: str,
        field: str,
        value: Any,
        snapshot: Mapping[str, Any],
    ) -> None:
        """Persist one answered field together with the full answers snapshot.

        Parameters
        ----------
        user_id:
            Identity of the user driving the session.
        field:
            The answer field that was just written.
        value:
            The trimmed answer.
        snapshot:
            The complete accumulated answers, copied when the turn was
            submitted.
        """
        ...

    @abstractmethod
    async def complete_interview(self, user_id: str, snapshot: Mapping[str, Any]) -> None:
        """Persist the final snapshot and mark the interview complete."""
        ...
