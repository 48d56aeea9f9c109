"""Managed speech output with backend fallback.

``ManagedSpeechOutput`` implements :class:`SpeechOutput` on top of an
ordered list of :class:`SpeechBackend` engines.  Playback of an utterance
tries each backend in turn and only reports an error once all of them
have failed; this is how a cloud voice falls back to a local one.

The utterance currently playing is the only shared resource.  It is
acquired when ``speak()`` starts an utterance and released when that
utterance ends, fails or is cancelled.  ``cancel()`` is the single way to
stop playback, and starting a new utterance cancels the previous one.
"""

from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

from bayb_interview.interfaces import SpeechCallbacks, SpeechOutput

logger = logging.getLogger(__name__)


# Pronunciation rewrites applied before synthesis, in order.
_TTS_REWRITES: list[tuple[re.Pattern[str], str]] = [
    # The brand name is read as a word
    (re.compile(r"BAYB"), "babe"),
    (re.compile(r"\bCOO\b", re.IGNORECASE), "Chief Operating Officer"),
    (re.compile(r"Perfect,"), "Perfect"),
    # An apostrophe before a period is voiced as a hesitation
    (re.compile(r"'\."), "."),
    # No breath at the very end
    (re.compile(r"[.\\?]\Z"), ""),
    # Longer pauses after questions and sentences
    (re.compile(r"\?"), "?..."),
    (re.compile(r"\."), "..."),
]


def preprocess_text_for_tts(text: str) -> str:
    """Rewrite ``text`` so speech engines pronounce it naturally."""
    for pattern, replacement in _TTS_REWRITES:
        text = pattern.sub(replacement, text)
    return text


class SpeechBackend(ABC):
    """One synthesis engine (cloud voice, local voice, console, ...)."""

    name: str = "speech"

    @abstractmethod
    async def play(self, text: str) -> None:
        """Synthesize and play ``text``; return when playback has finished.

        Raise to signal failure so the next backend can be tried.
        """
        ...


class _Utterance:
    """Callback bookkeeping for one ``speak()`` call."""

    def __init__(self, text: str, callbacks: SpeechCallbacks) -> None:
        self.text = text
        self.callbacks = callbacks
        self.task: Optional[asyncio.Task] = None
        self.started = False
        self.settled = False

    def start(self) -> None:
        self.started = True
        _fire(self.callbacks.on_start)

    def finish(self) -> None:
        if self.started and not self.settled:
            self.settled = True
            _fire(self.callbacks.on_end)

    def fail(self, exc: Exception) -> None:
        if self.started and not self.settled:
            self.settled = True
            _fire(self.callbacks.on_error, exc)


def _fire(callback: Optional[Callable], *args) -> None:
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        logger.exception("Speech callback %r raised", callback)


class ManagedSpeechOutput(SpeechOutput):
    """Speech output that owns the current utterance and falls back across backends.

    Args:
        backends: engines to try, in order of preference
        preprocess: text rewrite applied before synthesis
    """

    def __init__(
        self,
        backends: Sequence[SpeechBackend],
        *,
        preprocess: Callable[[str], str] = preprocess_text_for_tts,
    ) -> None:
        if not backends:
            raise ValueError("ManagedSpeechOutput needs at least one backend")
        self._backends = list(backends)
        self._preprocess = preprocess
        self._current: Optional[_Utterance] = None

    @property
    def is_speaking(self) -> bool:
        return self._current is not None

    def speak(self, text: str, callbacks: SpeechCallbacks | None = None) -> None:
        """Start speaking ``text`` on the running event loop."""
        self.cancel()

        utterance = _Utterance(text, callbacks or SpeechCallbacks())
        self._current = utterance
        utterance.task = asyncio.get_running_loop().create_task(self._run(utterance))

    def cancel(self) -> None:
        """Stop the in-flight utterance, if any; it reports ``on_end``."""
        utterance = self._current
        if utterance is None:
            return
        self._current = None
        if utterance.task is not None:
            utterance.task.cancel()
        utterance.finish()

    async def _run(self, utterance: _Utterance) -> None:
        utterance.start()
        try:
            error = await self._play_with_fallback(self._preprocess(utterance.text))
        except asyncio.CancelledError:
            self._release(utterance)
            utterance.finish()
            raise

        self._release(utterance)
        if error is None:
            utterance.finish()
        else:
            logger.error("All speech backends failed: %s", error)
            utterance.fail(error)

    async def _play_with_fallback(self, text: str) -> Optional[Exception]:
        """Play through the first backend that succeeds; return the last error otherwise."""
        last_error: Optional[Exception] = None
        for backend in self._backends:
            try:
                await backend.play(text)
                return None
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Speech backend %s failed: %s", backend.name, exc)
                last_error = exc
        return last_error

    def _release(self, utterance: _Utterance) -> None:
        if self._current is utterance:
            self._current = None
