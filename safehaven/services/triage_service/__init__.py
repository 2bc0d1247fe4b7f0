"""Triage Service: keyword triage and scripted replies for the support chat.

Every user message is classified into one risk tier (crisis, depression,
distress, general) and answered with a scripted reply after a short
"composing" delay. Crisis messages flag the emergency resources.

Components:
- lexicon.py: Trigger phrases per tier
- classifier.py: TriageClassifier with fixed tier priority
- responses.py: ResponseCatalog and ResponseSelector
- quick_prompts.py: Quick-prompt buttons that bypass classification
- scheduler.py: Injectable schedulers for the composing delay
- session.py: TriageSession state machine and create_session()
- handler.py: Flask HTTP endpoints hosting in-memory sessions

Usage:
    from safehaven.services.triage_service import create_session
    session = create_session()
    session.submit_message("I'm so stressed about work")
"""

from .classifier import ClassificationResult, TriageClassifier
from .config import TriageConfig
from .lexicon import LEXICON, LEXICON_VERSION, LexiconEntry
from .quick_prompts import (
    QUICK_PROMPTS,
    QuickPrompt,
    QuickPromptTable,
    UnknownQuickPromptError,
    lookup_quick_prompt,
)
from .responses import RESPONSES, ResponseCatalog, ResponseSelector
from .scheduler import (
    AsyncioScheduler,
    ClockScheduler,
    ManualClock,
    ScheduledCall,
    Scheduler,
)
from .session import SessionState, TriageSession, create_session

__all__ = [
    "ClassificationResult",
    "TriageClassifier",
    "TriageConfig",
    "LEXICON",
    "LEXICON_VERSION",
    "LexiconEntry",
    "QUICK_PROMPTS",
    "QuickPrompt",
    "QuickPromptTable",
    "UnknownQuickPromptError",
    "lookup_quick_prompt",
    "RESPONSES",
    "ResponseCatalog",
    "ResponseSelector",
    "AsyncioScheduler",
    "ClockScheduler",
    "ManualClock",
    "ScheduledCall",
    "Scheduler",
    "SessionState",
    "TriageSession",
    "create_session",
]
