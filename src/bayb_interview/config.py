"""Interview runner configuration read from environment variables.

All settings have sensible defaults for local use.  The CLI reads them once
at startup; command-line flags take precedence.
"""

import os
from dataclasses import dataclass

from bayb_interview.constants import COMPLETION_DELAY_SECONDS

_TRUTHY = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class InterviewSettings:
    """Immutable runner configuration read from environment at startup."""

    # Catalog YAML (None -> the packaged onboarding catalog)
    question_bank_path: str | None = None

    # Speak prompts when the interview starts
    audio_enabled: bool = True

    # Logging
    log_level: str = "INFO"

    # Write answers to the key-value store instead of only logging them
    persist: bool = False

    completion_delay: float = COMPLETION_DELAY_SECONDS


def load_settings() -> InterviewSettings:
    """Build settings from ``BAYB_*`` environment variables."""
    return InterviewSettings(
        question_bank_path=os.getenv("BAYB_QUESTION_BANK") or None,
        audio_enabled=_env_flag("BAYB_AUDIO_ENABLED", True),
        log_level=os.getenv("BAYB_LOG_LEVEL", "INFO").upper(),
        persist=_env_flag("BAYB_PERSIST", False),
        completion_delay=COMPLETION_DELAY_SECONDS,
    )
