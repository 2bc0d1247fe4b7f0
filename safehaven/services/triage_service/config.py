"""Triage Service configuration.

Timings follow the support chat surface: a message reply appears after
1.5 s of "composing", a quick-prompt reply after 1.0 s.
"""
from dataclasses import dataclass

from .lexicon import LEXICON_VERSION

GREETING = "Hello, I'm here to listen and support you. How are you feeling today?"


@dataclass(frozen=True)
class TriageConfig:
    """Configuration for a triage session."""

    # Simulated thinking time before the agent reply is appended
    reply_delay_seconds: float = 1.5
    quick_prompt_delay_seconds: float = 1.0

    # Synthetic agent entry every session starts with
    greeting: str = GREETING

    # Version tracking for audit trail
    lexicon_version: str = LEXICON_VERSION

    def __post_init__(self):
        if self.reply_delay_seconds < 0:
            raise ValueError(
                f"reply_delay_seconds must be >= 0, got {self.reply_delay_seconds}"
            )
        if self.quick_prompt_delay_seconds < 0:
            raise ValueError(
                "quick_prompt_delay_seconds must be >= 0, "
                f"got {self.quick_prompt_delay_seconds}"
            )
        if not self.greeting.strip():
            raise ValueError("greeting must not be blank")
